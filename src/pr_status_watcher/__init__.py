"""Watches GitHub pull requests and reports review and CI readiness."""

__version__ = "1.0.0"
