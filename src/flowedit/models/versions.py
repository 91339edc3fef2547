"""Version store models.

SaveResult, VersionInfo and WorkflowInfo are returned by
WorkflowVersionStore. Not ORM models -- used for data transfer only.
StoreConfig resolves where the store lives.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

DB_ENV = "FLOWEDIT_DB"
DEFAULT_DB_PATH = ".flowedit.db"


class SaveResult(BaseModel):
    """Outcome of a save. ``skipped`` means the content matched the current version."""

    workflow_id: str
    version: int
    checksum: str
    skipped: bool = False


class VersionInfo(BaseModel):
    """Metadata for one stored version (no document payload)."""

    workflow_id: str
    version: int
    created_at: datetime
    created_by: str
    edit_summary: str
    checksum: str
    byte_size: int


class WorkflowInfo(BaseModel):
    workflow_id: str
    current_version: int
    created_at: datetime
    last_modified: datetime


class StoreConfig(BaseModel):
    """Where the version store lives.

    ``url`` takes precedence over ``db_path`` when set.
    """

    db_path: str = DEFAULT_DB_PATH
    url: Optional[str] = None

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Read the database path from FLOWEDIT_DB, else the default."""
        return cls(db_path=os.environ.get(DB_ENV) or DEFAULT_DB_PATH)
