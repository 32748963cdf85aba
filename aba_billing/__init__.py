"""Billing client for the ABA Clinic practice-management backend."""

__version__ = "1.0.0"
