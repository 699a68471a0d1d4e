"""Core engine package for the baseball card games."""

__all__ = [
    "cards",
    "catalog",
    "deck",
    "scoring",
    "matching",
    "valuation",
    "guess",
    "ledger",
    "rules_schema",
    "service",
]
