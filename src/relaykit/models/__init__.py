"""Pydantic models exchanged between the engine and its collaborators."""
