"""Cloudant CLI."""
