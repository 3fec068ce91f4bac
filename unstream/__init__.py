"""Unstream: multi-source artist discovery and release-freshness engine."""

__version__ = "0.1.0"
