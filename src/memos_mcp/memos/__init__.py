"""Memos REST API client."""
