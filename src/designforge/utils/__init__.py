"""Utility package init."""
