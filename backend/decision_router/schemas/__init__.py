"""Pydantic schemas for spec documents and the HTTP boundary."""
