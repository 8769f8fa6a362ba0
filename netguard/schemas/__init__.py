"""Schemas - Pydantic models for API request/response bodies."""
