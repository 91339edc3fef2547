"""Document-level operations: metadata and global settings."""

from __future__ import annotations

import copy
import logging

from flowedit.operations._common import clone, finalize, now_iso, require_mapping

logger = logging.getLogger(__name__)

# Settings keys the update operation will write; anything else is ignored.
SETTINGS_KEYS: tuple[str, ...] = (
    "max_execution_time_hours",
    "data_retention_days",
    "default_timezone",
    "notification_channels",
    "integrations",
)


def default_global_settings() -> dict:
    """Settings a document gets when the first settings update creates them."""
    return {
        "max_execution_time_hours": 24,
        "data_retention_days": 30,
        "default_timezone": "UTC",
        "notification_channels": {"urgent": [], "normal": [], "reports": []},
        "integrations": {},
    }


def update_workflow_metadata(document: dict, updates: dict) -> dict:
    """Merge ``updates`` into ``metadata``; ``last_modified`` is always reset to now.

    Raises:
        DocumentValidationError: If the merged metadata breaks the document.
    """
    changes = copy.deepcopy(require_mapping(updates, "updates"))
    result = clone(document)
    metadata = result.get("metadata")
    merged = {**(metadata if isinstance(metadata, dict) else {}), **changes}
    merged["last_modified"] = now_iso()
    result["metadata"] = merged
    return finalize(result)


def update_global_settings(document: dict, settings: dict) -> dict:
    """Apply known settings keys, creating defaults if the document has none.

    Keys outside SETTINGS_KEYS and keys whose value is ``None`` are skipped.
    """
    incoming = copy.deepcopy(require_mapping(settings, "settings"))
    result = clone(document)

    current = result.get("global_settings")
    merged = dict(current) if isinstance(current, dict) else default_global_settings()
    ignored = []
    for key, value in incoming.items():
        if key not in SETTINGS_KEYS:
            ignored.append(key)
        elif value is not None:
            merged[key] = value
    if ignored:
        logger.debug("Ignoring unknown settings keys: %s", ", ".join(sorted(ignored)))

    result["global_settings"] = merged
    return finalize(result)
