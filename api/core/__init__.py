"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks the feature packages use (DB wiring,
settings). Feed-specific SQL and business logic live in `feeds/`.
"""
