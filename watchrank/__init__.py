"""Catalog recommendation ranking service."""
