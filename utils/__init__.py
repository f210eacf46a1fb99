"""Shared helpers for the catalog service and its CLI."""
