"""REST play service for the baseball card games."""
