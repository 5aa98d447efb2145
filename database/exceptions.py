"""Database exceptions."""

class DatabaseError(Exception):
    """Base exception for store and database failures."""
    pass

class DatabaseSchemaError(DatabaseError):
    """Raised when schema initialization or migration fails."""
    pass

class ReadOnlyTransactionError(DatabaseError):
    """Raised when a write is attempted inside a read-only transaction."""
    pass

class StoreClosedError(DatabaseError):
    """Raised when a transaction is opened on a closed store."""
    pass
