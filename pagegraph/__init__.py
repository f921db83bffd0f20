"""Diagram page to property graph conversion."""
