"""Enumeration driver and its callbacks."""
