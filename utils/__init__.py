"""Shared helpers for the quotation converter."""
