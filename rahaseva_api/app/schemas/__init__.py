"""
Pydantic schemas for API request bodies.

Persisted documents live in ``app.models``; the schemas here only
describe what clients may send.
"""
