"""Arivu: query dispatch core (smart resolver and federated search)."""

__version__ = "0.1.0"
