import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .utils import resolve_sqlite_url, sqlite_file_path

logger = logging.getLogger(__name__)

load_dotenv()
# Repository root; relative SQLite paths are anchored here.
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./luckydraw.db"), ROOT_DIR
)


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create the engine for the event store.

    File-backed SQLite databases get their parent directory created and run
    in WAL mode.
    """
    url = resolve_sqlite_url(database_url or DEFAULT_SQLITE_URL, ROOT_DIR)
    path = sqlite_file_path(url)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Using SQLite event store at {path}")

    engine = create_engine(url, echo=echo, future=True)
    if path is not None:
        event.listen(engine, "connect", _enable_wal)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # records are turned into value objects after commit
        future=True,
    )
