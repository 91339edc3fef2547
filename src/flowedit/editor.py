"""WorkflowEditor: the editing agent wired to the version store.

Each edit loads the current version, runs the agent on it, and saves the
result as the next version. The save is conditional on the workflow still
being at the version that was loaded, so two concurrent edits cannot both
land on the same base.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from flowedit.agent.models import EditRequest, EditResult, ToolCallStatus
from flowedit.exceptions import WorkflowNotFoundError
from flowedit.models.versions import SaveResult, VersionInfo
from flowedit.storage.versions import generate_version_summary
from flowedit.validation import validate_document_strict

if TYPE_CHECKING:
    from flowedit.agent.loop import WorkflowEditingAgent
    from flowedit.storage.versions import WorkflowVersionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditOutcome:
    """Agent result plus the saved version, if anything was saved."""

    result: EditResult
    version: Optional[SaveResult] = None

    @property
    def success(self) -> bool:
        return self.result.success


class WorkflowEditor:
    """Versioned editing of stored workflows.

    *agent* is only needed for edit(); creating, importing, loading and
    reverting work without one.
    """

    def __init__(
        self, store: WorkflowVersionStore, agent: WorkflowEditingAgent | None = None
    ) -> None:
        self._store = store
        self._agent = agent

    @property
    def store(self) -> WorkflowVersionStore:
        return self._store

    @property
    def agent(self) -> WorkflowEditingAgent | None:
        return self._agent

    def create(
        self,
        document: dict,
        *,
        workflow_id: str | None = None,
        created_by: str = "system",
    ) -> SaveResult:
        """Validate *document* and save it as version 1 of a new workflow.

        The workflow id defaults to the document's ``id``.

        Raises:
            DocumentValidationError: If the document is invalid.
            VersionConflictError: If the workflow already exists.
        """
        validate_document_strict(document)
        workflow_id = workflow_id or document["id"]
        return self._store.save_version(
            workflow_id,
            document,
            created_by=created_by,
            edit_summary=generate_version_summary(None, document),
            expected_version=0,
        )

    def import_document(
        self,
        document: dict,
        *,
        workflow_id: str | None = None,
        created_by: str = "system",
    ) -> SaveResult:
        """Save *document* as a new workflow, or as the next version of an existing one."""
        validate_document_strict(document)
        workflow_id = workflow_id or document["id"]
        try:
            version = self._store.current_version(workflow_id)
        except WorkflowNotFoundError:
            return self.create(document, workflow_id=workflow_id, created_by=created_by)

        previous = self._store.load_version(workflow_id, version)
        return self._store.save_version(
            workflow_id,
            document,
            created_by=created_by,
            edit_summary=generate_version_summary(previous, document),
            expected_version=version,
        )

    def edit(
        self,
        workflow_id: str,
        message: str,
        *,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> EditOutcome:
        """Run one natural-language edit against the current version.

        A failed agent run saves nothing. A successful one is saved with a
        summary built from the tool calls that were applied.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            VersionConflictError: If another save landed during the edit.
        """
        if self._agent is None:
            raise RuntimeError("WorkflowEditor.edit() needs an agent")
        base_version = self._store.current_version(workflow_id)
        document = self._store.load_version(workflow_id, base_version)

        result = self._agent.process_edit_request(
            EditRequest(
                workflow_id=workflow_id,
                document=document,
                message=message,
                user_id=user_id,
                session_id=session_id,
            )
        )
        if not result.success or result.document is None:
            logger.info("Edit of workflow %s not saved: %s", workflow_id, result.failure_kind)
            return EditOutcome(result=result)

        applied = [r for r in result.tool_calls if r.status is ToolCallStatus.SUCCESS]
        saved = self._store.save_version(
            workflow_id,
            result.document,
            created_by=user_id or "agent",
            edit_summary=generate_version_summary(document, result.document, applied),
            expected_version=base_version,
        )
        return EditOutcome(result=result, version=saved)

    def load(self, workflow_id: str, version: int | None = None) -> dict:
        if version is None:
            return self._store.load_current(workflow_id)
        return self._store.load_version(workflow_id, version)

    def history(self, workflow_id: str, limit: int = 20, offset: int = 0) -> list[VersionInfo]:
        return self._store.history(workflow_id, limit=limit, offset=offset)

    def revert(self, workflow_id: str, version: int, *, created_by: str = "system") -> SaveResult:
        return self._store.revert(workflow_id, version, created_by=created_by)
