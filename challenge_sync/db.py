from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _normalize_database_url(database_url: str) -> str:
    url = str(database_url or "").strip()
    if not url:
        return "sqlite://"
    if url.startswith("sqlite:///~"):
        url = "sqlite:///" + os.path.expanduser(url[len("sqlite:///") :])
    return url


def create_local_engine(database_url: str) -> Engine:
    url = _normalize_database_url(database_url)
    if not url.startswith("sqlite"):
        raise ValueError(f"Local challenge store needs a sqlite URL, got {url!r}")
    logger.debug("Opening local challenge store at %s", url)
    return create_engine(url, connect_args={"check_same_thread": False}, future=True)
