"""Browser front-ends for the baseball card games."""
