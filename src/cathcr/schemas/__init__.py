"""Cathcr API schemas."""
