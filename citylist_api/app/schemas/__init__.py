"""
Pydantic schema definitions for API payloads.

Schemas are separated from storage so that the API representation
does not depend on the SQLite layout.
"""
