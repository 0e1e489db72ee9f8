"""Boom Oracle: pattern-matching next-tick estimator."""

__version__ = "0.1.0"
