from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

DB_FILENAME = "seatmap.db"


def data_dir() -> Path:
    """Directory holding the SQLite file: ``SEATMAP_DATA_DIR``, else ``./data``."""
    path = Path(os.environ.get("SEATMAP_DATA_DIR") or Path.cwd() / "data")
    path.mkdir(parents=True, exist_ok=True)
    return path


def database_url() -> str:
    url = os.environ.get("SEATMAP_DB_URL")
    if url:
        return url
    return f"sqlite:///{data_dir() / DB_FILENAME}"


def _make_engine(url: str) -> Engine:
    # request handlers run in a thread pool; sqlite must allow that
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = _make_engine(database_url())


def init_db() -> None:
    from . import models  # noqa: F401 - registers SceneRecord on the metadata

    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine)
