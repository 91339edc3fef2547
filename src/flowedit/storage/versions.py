"""Append-only version history for workflow documents.

Every successful save creates a new numbered version; versions are never
rewritten. Each payload carries a SHA-256 checksum of its canonical JSON
form which is re-verified on every load.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flowedit.exceptions import (
    VersionConflictError,
    VersionIntegrityError,
    VersionNotFoundError,
    WorkflowNotFoundError,
)
from flowedit.models.versions import SaveResult, StoreConfig, VersionInfo, WorkflowInfo
from flowedit.models.workflow import ElementType
from flowedit.storage.engine import create_session_factory, create_store_engine, init_db
from flowedit.storage.schema import WorkflowRow, WorkflowVersionRow

logger = logging.getLogger(__name__)


def canonical_json(document: dict) -> str:
    return json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_checksum(document: dict) -> str:
    """SHA-256 hex digest of the document's canonical JSON."""
    return hashlib.sha256(canonical_json(document).encode("utf-8")).hexdigest()


def _comparable(document: dict) -> str:
    # metadata.last_modified changes on every edit and does not count as content
    metadata = document.get("metadata")
    if isinstance(metadata, dict) and "last_modified" in metadata:
        metadata = {k: v for k, v in metadata.items() if k != "last_modified"}
        document = {**document, "metadata": metadata}
    return canonical_json(document)


def _version_info(row: WorkflowVersionRow) -> VersionInfo:
    return VersionInfo(
        workflow_id=row.workflow_id,
        version=row.version,
        created_at=row.created_at,
        created_by=row.created_by,
        edit_summary=row.edit_summary,
        checksum=row.checksum,
        byte_size=row.byte_size,
    )


class WorkflowVersionStore:
    """SQLAlchemy-backed version history.

    Usage::

        store = WorkflowVersionStore.open(StoreConfig(db_path="flows.db"))
        saved = store.save_version("wf1", document, created_by="alice")
        document = store.load_current("wf1")
    """

    def __init__(self, engine: Engine) -> None:
        init_db(engine)
        self._engine = engine
        self._session_factory = create_session_factory(engine)

    @classmethod
    def open(cls, config: StoreConfig | None = None) -> WorkflowVersionStore:
        """Open (creating if needed) the store described by *config*."""
        config = config or StoreConfig.from_env()
        return cls(create_store_engine(config.db_path, url=config.url))

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_version(
        self,
        workflow_id: str,
        document: dict,
        *,
        created_by: str = "system",
        edit_summary: str | None = None,
        expected_version: int | None = None,
        skip_duplicate_check: bool = False,
    ) -> SaveResult:
        """Append *document* as the next version of *workflow_id*.

        Args:
            workflow_id: Workflow to save under; created on first save.
            document: The full document.
            created_by: Author recorded on the version.
            edit_summary: Defaults to ``"Version N"``.
            expected_version: If given, the save only goes through when
                the workflow is still at this version (0 for a new one).
            skip_duplicate_check: Save even when the content matches the
                current version.

        Raises:
            VersionConflictError: If *expected_version* is stale.
        """
        payload = json.dumps(document, ensure_ascii=False)
        checksum = compute_checksum(document)

        with self._session_factory() as session:
            workflow = session.get(WorkflowRow, workflow_id)
            current = workflow.current_version if workflow is not None else 0

            if expected_version is not None and expected_version != current:
                raise VersionConflictError(workflow_id, expected_version, current)

            if not skip_duplicate_check and current > 0:
                latest = self._get_row(session, workflow_id, current)
                previous = json.loads(latest.payload_json) if latest is not None else None
                if previous is not None and _comparable(previous) == _comparable(document):
                    logger.info(
                        "Workflow %s unchanged since version %d, save skipped", workflow_id, current
                    )
                    return SaveResult(
                        workflow_id=workflow_id,
                        version=current,
                        checksum=latest.checksum,
                        skipped=True,
                    )

            version = current + 1
            now = datetime.now(timezone.utc)
            if workflow is None:
                workflow = WorkflowRow(
                    workflow_id=workflow_id,
                    current_version=0,
                    created_at=now,
                    last_modified=now,
                )
                session.add(workflow)
            workflow.current_version = version
            workflow.last_modified = now
            session.add(
                WorkflowVersionRow(
                    workflow_id=workflow_id,
                    version=version,
                    created_at=now,
                    created_by=created_by,
                    edit_summary=edit_summary or f"Version {version}",
                    checksum=checksum,
                    byte_size=len(payload.encode("utf-8")),
                    payload_json=payload,
                )
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                actual = self._current_version(workflow_id)
                raise VersionConflictError(workflow_id, version - 1, actual) from exc

        logger.info("Saved workflow %s version %d (%s)", workflow_id, version, checksum[:12])
        return SaveResult(workflow_id=workflow_id, version=version, checksum=checksum)

    def revert(
        self,
        workflow_id: str,
        version: int,
        *,
        created_by: str = "system",
        edit_summary: str | None = None,
    ) -> SaveResult:
        """Save the content of an old version as a new version.

        History is never rewritten; reverting to the current content still
        creates a version.
        """
        document = self.load_version(workflow_id, version)
        return self.save_version(
            workflow_id,
            document,
            created_by=created_by,
            edit_summary=edit_summary or f"Reverted to version {version}",
            skip_duplicate_check=True,
        )

    def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow and all of its versions. Returns False if absent."""
        with self._session_factory() as session:
            workflow = session.get(WorkflowRow, workflow_id)
            if workflow is None:
                return False
            session.execute(
                delete(WorkflowVersionRow).where(WorkflowVersionRow.workflow_id == workflow_id)
            )
            session.delete(workflow)
            session.commit()
        logger.info("Deleted workflow %s", workflow_id)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_version(self, workflow_id: str, version: int) -> dict:
        """Load one version, verifying its checksum.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            VersionNotFoundError: If it has no such version.
            VersionIntegrityError: If the payload fails its checksum.
        """
        with self._session_factory() as session:
            row = self._get_row(session, workflow_id, version)
            if row is None:
                if session.get(WorkflowRow, workflow_id) is None:
                    raise WorkflowNotFoundError(workflow_id)
                raise VersionNotFoundError(workflow_id, version)
            document = json.loads(row.payload_json)
            if compute_checksum(document) != row.checksum:
                logger.error("Checksum mismatch for workflow %s version %d", workflow_id, version)
                raise VersionIntegrityError(workflow_id, version)
            return document

    def load_current(self, workflow_id: str) -> dict:
        """Load the latest version of a workflow."""
        return self.load_version(workflow_id, self.current_version(workflow_id))

    def current_version(self, workflow_id: str) -> int:
        """Current version number.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        version = self._current_version(workflow_id)
        if version == 0:
            raise WorkflowNotFoundError(workflow_id)
        return version

    def history(self, workflow_id: str, limit: int = 20, offset: int = 0) -> list[VersionInfo]:
        """Version metadata, newest first."""
        with self._session_factory() as session:
            if session.get(WorkflowRow, workflow_id) is None:
                raise WorkflowNotFoundError(workflow_id)
            stmt = (
                select(WorkflowVersionRow)
                .where(WorkflowVersionRow.workflow_id == workflow_id)
                .order_by(WorkflowVersionRow.version.desc())
                .offset(offset)
                .limit(limit)
            )
            return [_version_info(row) for row in session.execute(stmt).scalars()]

    def list_workflows(self) -> list[WorkflowInfo]:
        """All workflows, most recently modified first."""
        with self._session_factory() as session:
            stmt = select(WorkflowRow).order_by(WorkflowRow.last_modified.desc())
            return [
                WorkflowInfo(
                    workflow_id=row.workflow_id,
                    current_version=row.current_version,
                    created_at=row.created_at,
                    last_modified=row.last_modified,
                )
                for row in session.execute(stmt).scalars()
            ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_row(session: Session, workflow_id: str, version: int) -> WorkflowVersionRow | None:
        stmt = select(WorkflowVersionRow).where(
            WorkflowVersionRow.workflow_id == workflow_id,
            WorkflowVersionRow.version == version,
        )
        return session.execute(stmt).scalar_one_or_none()

    def _current_version(self, workflow_id: str) -> int:
        with self._session_factory() as session:
            workflow = session.get(WorkflowRow, workflow_id)
            return workflow.current_version if workflow is not None else 0


# ----------------------------------------------------------------------
# Edit summaries
# ----------------------------------------------------------------------


def _element_total(document: dict) -> int:
    total = 0
    for goal in document.get("goals") or []:
        if not isinstance(goal, dict):
            continue
        for element_type in ElementType:
            children = goal.get(element_type.collection)
            total += len(children) if isinstance(children, list) else 0
    return total


def _tool_action(tool: str) -> str:
    return re.sub(r"([A-Z])", r" \1", tool).lower().strip()


def _tool_name(call: Any) -> str:
    if isinstance(call, dict):
        return str(call.get("tool", ""))
    return str(call.tool)


def generate_version_summary(
    old: dict | None,
    new: dict,
    tool_calls: Iterable[Any] | None = None,
) -> str:
    """Describe what changed between two documents.

    Uses the tool calls when there are any (``"Applied changes: add task,
    delete goal"``), otherwise falls back to comparing names, goal counts
    and element counts.
    """
    goals = new.get("goals") or []
    if old is None:
        return f'Initial version: Created workflow "{new.get("name", "")}" with {len(goals)} goals'

    calls = list(tool_calls or [])
    if calls:
        return "Applied changes: " + ", ".join(_tool_action(_tool_name(c)) for c in calls)

    changes: list[str] = []
    if old.get("name") != new.get("name"):
        changes.append(f'renamed from "{old.get("name")}" to "{new.get("name")}"')

    goal_diff = len(goals) - len(old.get("goals") or [])
    if goal_diff:
        changes.append(f"added {goal_diff} goals" if goal_diff > 0 else f"removed {-goal_diff} goals")

    element_diff = _element_total(new) - _element_total(old)
    if element_diff:
        changes.append(
            f"added {element_diff} elements" if element_diff > 0
            else f"removed {-element_diff} elements"
        )

    if changes:
        return "Updated workflow: " + ", ".join(changes)
    return "Minor updates to workflow"
