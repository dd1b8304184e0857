"""Concurrent balance aggregation across Cosmos SDK networks."""

__version__ = "0.1.0"
