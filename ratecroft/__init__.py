"""Mortgage rates, loan math and lender quotes built on FRED series."""

__version__ = "1.0.0"
