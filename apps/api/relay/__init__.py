"""Shopify webhook relay and Admin API command proxy."""
