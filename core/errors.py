"""
Error codes shared by the API and the sync client.

Kept free of Django imports so the client side can use them without a
configured settings module.
"""

VALIDATION = "VALIDATION"
NOT_FOUND = "NOT_FOUND"
UNAUTHENTICATED = "UNAUTHENTICATED"
SCHEMA_OUTDATED = "SCHEMA_OUTDATED"
CONFLICT = "CONFLICT"
TRANSIENT = "TRANSIENT"
PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"

RETRYABLE = frozenset({CONFLICT, TRANSIENT})
