"""Pydantic Schemas - request validation for API endpoints.

Invariants:
    - Schemas validate at the HTTP boundary only; services receive plain values
"""
