"""Pydantic models for blog content and admin identities."""
