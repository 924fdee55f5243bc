"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks that every content type uses (DB wiring,
settings, list envelopes, storage helpers). Keep type-specific SQL and
business rules in the corresponding package (e.g. `opportunities/`).
"""
