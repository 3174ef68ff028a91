from pathlib import Path
from typing import Optional

SQLITE_PREFIX = "sqlite:///"
MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Make a relative or home-based SQLite URL absolute.

    ``sqlite:///./event.db`` is resolved against ``project_root`` and
    ``sqlite:///~/event.db`` against the user's home. In-memory and
    non-SQLite URLs come back unchanged.
    """
    if url in MEMORY_URLS or not url.startswith(SQLITE_PREFIX):
        return url
    rel = url[len(SQLITE_PREFIX) :]
    if rel.startswith("./"):
        path = project_root / rel[2:]
    elif rel.startswith("~"):
        path = Path(rel).expanduser()
    else:
        return url
    return f"{SQLITE_PREFIX}{path.resolve()}"


def sqlite_file_path(url: str) -> Optional[Path]:
    """Return the database file behind an absolute SQLite URL, if any."""
    if url in MEMORY_URLS or not url.startswith(SQLITE_PREFIX):
        return None
    return Path(url[len(SQLITE_PREFIX) :])
