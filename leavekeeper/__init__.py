"""Leavekeeper — leave entitlement and balance service."""

__version__ = "1.0.0"
