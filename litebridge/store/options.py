"""Connection options: logical db urls resolved against the storage directory."""

from dataclasses import dataclass, field
from pathlib import Path

from litebridge.errors import InvalidDbUrlError

SCHEME = "sqlite"


@dataclass
class ConnectOptions:
    db_url: str
    extensions: list[str] | None = None

    @classmethod
    def from_url(cls, db_url: str) -> "ConnectOptions":
        return cls(db_url=db_url)

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectOptions":
        """Build options from the payload a host sends with `load`."""
        if "db_url" not in data:
            raise InvalidDbUrlError("<missing>")
        extensions = data.get("extensions")
        return cls(
            db_url=str(data["db_url"]),
            extensions=list(extensions) if extensions is not None else None,
        )


@dataclass(frozen=True)
class ConnectTarget:
    url: str
    path: Path
    query: str | None = None
    extensions: tuple[str, ...] = field(default_factory=tuple)

    def database(self) -> str:
        """Argument for sqlite3.connect; a file: URI when the url carries a query."""
        if self.query:
            return f"file:{self.path.as_posix()}?{self.query}"
        return str(self.path)

    @property
    def uri(self) -> bool:
        return bool(self.query)


def resolve(
    db_url: str,
    storage_dir: Path,
    extensions: list[str] | None = None,
) -> ConnectTarget:
    """Map a logical url like `sqlite:app.db` onto a file under storage_dir.

    Everything after the first `:` is the path fragment. The storage
    directory is created if missing.
    """
    if ":" not in db_url:
        raise InvalidDbUrlError(db_url)
    fragment = db_url.split(":", 1)[1]
    fragment, _, query = fragment.partition("?")

    storage_dir.mkdir(parents=True, exist_ok=True)
    path = storage_dir / fragment

    return ConnectTarget(
        url=f"{SCHEME}:{path}",
        path=path,
        query=query or None,
        extensions=tuple(extensions or ()),
    )
