"""Peer-group tracker with replicated in-memory state, a line-based client and a two-party chat."""

__version__ = "0.1.0"