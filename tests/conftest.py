"""Shared test fixtures for flowedit.

Provides sample workflow documents, an in-memory version store, and a
scripted model invoker that records every call.
"""

from __future__ import annotations

import copy
import json

import pytest

from flowedit.storage.engine import create_store_engine
from flowedit.storage.versions import WorkflowVersionStore


def make_document() -> dict:
    """A valid two-goal document touching every element kind."""
    return {
        "id": "wf_onboarding",
        "name": "Customer Onboarding",
        "version": "2.0",
        "objective": "Get new customers set up",
        "metadata": {
            "author": "ops-team",
            "created_at": "2024-01-01T00:00:00.000Z",
            "last_modified": "2024-01-01T00:00:00.000Z",
            "tags": ["onboarding", "customers"],
        },
        "goals": [
            {
                "id": "goal1",
                "name": "Collect details",
                "description": "Gather customer information",
                "order": 1,
                "constraints": [
                    {
                        "id": "const1",
                        "description": "Finish within two days",
                        "type": "time_limit",
                        "enforcement": "warn",
                    }
                ],
                "policies": [
                    {
                        "id": "pol1",
                        "name": "Escalate VIPs",
                        "if": {"field": "tier", "operator": "equals", "value": "vip"},
                        "then": {"action": "notify", "params": {"channel": "urgent"}},
                    }
                ],
                "tasks": [
                    {
                        "id": "task1",
                        "description": "Send welcome email",
                        "assignee": {"type": "ai_agent", "model": "gpt-4o-mini"},
                    },
                    {
                        "id": "task2",
                        "description": "Review submitted details",
                        "assignee": {"type": "human", "role": "account_manager"},
                        "depends_on": ["task1"],
                    },
                ],
                "forms": [
                    {
                        "id": "form1",
                        "name": "Customer details",
                        "type": "structured",
                        "fields": [{"name": "company", "type": "text"}],
                    }
                ],
            },
            {
                "id": "goal2",
                "name": "Provision account",
                "description": "Create the customer's account",
                "order": 2,
                "constraints": [],
                "policies": [],
                "tasks": [
                    {
                        "id": "task3",
                        "description": "Create account",
                        "assignee": {"type": "human", "role": "support"},
                        "depends_on": ["task2"],
                    }
                ],
                "forms": [],
            },
        ],
    }


def make_minimal_document() -> dict:
    """One goal (``goal1``) with no elements."""
    return {
        "id": "wf_min",
        "name": "Minimal",
        "version": "2.0",
        "objective": "Smallest valid workflow",
        "metadata": {
            "author": "tester",
            "created_at": "2024-01-01T00:00:00.000Z",
            "last_modified": "2024-01-01T00:00:00.000Z",
            "tags": [],
        },
        "goals": [
            {
                "id": "goal1",
                "name": "Only goal",
                "description": "The single goal",
                "order": 1,
                "constraints": [],
                "policies": [],
                "tasks": [],
                "forms": [],
            }
        ],
    }


def all_ids(document: dict) -> set[str]:
    """Every goal and element id in a document."""
    ids = set()
    for goal in document["goals"]:
        ids.add(goal["id"])
        for collection in ("constraints", "policies", "tasks", "forms"):
            ids.update(element["id"] for element in goal[collection])
    return ids


def model_reply(tool_calls: list[dict], reasoning: str = "") -> dict:
    """Wrap tool calls in the ``{"response": json}`` shape the agent expects."""
    return {"response": json.dumps({"toolCalls": tool_calls, "reasoning": reasoning})}


class ScriptedInvoker:
    """ModelInvoker that returns queued replies and records every call.

    A queued Exception instance is raised instead of returned. The last
    reply repeats once the queue is exhausted.
    """

    def __init__(self, *replies) -> None:
        self._replies = list(replies)
        self.calls: list[tuple[str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def invoke(self, system_context: str, user_context: str) -> dict:
        self.calls.append((system_context, user_context))
        index = min(len(self.calls), len(self._replies)) - 1
        reply = self._replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def document() -> dict:
    return make_document()


@pytest.fixture
def minimal_document() -> dict:
    return make_minimal_document()


@pytest.fixture
def frozen(document):
    """Deep copy of ``document`` taken before the test mutates anything."""
    return copy.deepcopy(document)


@pytest.fixture
def engine():
    """In-memory SQLite engine."""
    eng = create_store_engine(":memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> WorkflowVersionStore:
    return WorkflowVersionStore(engine)
