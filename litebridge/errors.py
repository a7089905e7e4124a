class LiteBridgeError(Exception):
    """Base exception for litebridge errors."""

    pass


class SqlError(LiteBridgeError):
    """Raised when the database engine fails to connect or execute."""

    pass


class MigrationError(LiteBridgeError):
    """Raised when a database migration fails."""

    pass


class InvalidDbUrlError(LiteBridgeError):
    """Raised when a connection url has no scheme separator."""

    def __init__(self, url: str):
        super().__init__(f"invalid connection url: {url}")
        self.url = url


class DatabaseNotLoadedError(LiteBridgeError):
    """Raised when an operation names a database with no open pool."""

    def __init__(self, db: str):
        super().__init__(f"database {db} not loaded")
        self.db = db


class UnsupportedDatatypeError(LiteBridgeError):
    """Raised when a value cannot be represented as a dynamic value."""

    def __init__(self, datatype: str):
        super().__init__(f"unsupported datatype: {datatype}")
        self.datatype = datatype


def to_message(error: Exception) -> str:
    """Flatten an error to the plain string handed back to a host."""
    return str(error)
