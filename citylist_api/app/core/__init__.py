"""
Core infrastructure shared by the API: configuration, logging,
database access, security primitives and error types.
"""
