"""Pydantic schemas for JSON payloads."""
