"""Goldify — borrowing-market aggregator for gold-backed collateral."""

__version__ = "0.1.0"
