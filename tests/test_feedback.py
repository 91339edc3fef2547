"""Tests for retry feedback and model reply parsing."""

from __future__ import annotations

import json

import pytest

from flowedit.agent.feedback import (
    ASSIGNEE_HINT,
    ENFORCEMENT_HINT,
    ENUM_HINT,
    ID_HINT,
    NAME_HINT,
    build_feedback,
    select_hint,
)
from flowedit.agent.models import AttemptFailure, FailureKind
from flowedit.agent.response import clean_triple_backticks, parse_model_response
from flowedit.exceptions import MalformedModelResponseError
from flowedit.models.validation import IssueCode, ValidationIssue
from flowedit.models.workflow import EnforcementLevel, enum_values
from flowedit.toolkit import ToolCall


def _issue(path: str, code: IssueCode) -> ValidationIssue:
    return ValidationIssue(path=path, message="m", code=code)


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


class TestSelectHint:
    @pytest.mark.parametrize(
        "issue, hint",
        [
            (_issue("task.assignee.type", IssueCode.INVALID_ENUM_VALUE), ASSIGNEE_HINT),
            (_issue("goal.name", IssueCode.MISSING_REQUIRED_FIELD), NAME_HINT),
            (_issue("task.id", IssueCode.MISSING_REQUIRED_FIELD), ID_HINT),
            (_issue("constraint.enforcement", IssueCode.INVALID_ENUM_VALUE), ENFORCEMENT_HINT),
            (_issue("form.type", IssueCode.INVALID_ENUM_VALUE), ENUM_HINT),
        ],
    )
    def test_issue_codes(self, issue, hint):
        assert select_hint([issue], "") == hint

    def test_table_order_wins_over_issue_order(self):
        issues = [
            _issue("form.type", IssueCode.INVALID_ENUM_VALUE),
            _issue("task.assignee", IssueCode.MISSING_REQUIRED_FIELD),
        ]
        assert select_hint(issues, "") == ASSIGNEE_HINT

    def test_unmatched_issues_skip_message_patterns(self):
        issues = [_issue("task.timeout_minutes", IssueCode.INVALID_TYPE)]
        assert select_hint(issues, "Required field 'name' is missing") is None

    @pytest.mark.parametrize(
        "error, hint",
        [
            ("Required field 'name' is missing", NAME_HINT),
            ("goal id is required", ID_HINT),
            ("invalid assignee given", ASSIGNEE_HINT),
            ("Invalid enforcement level", ENFORCEMENT_HINT),
            ("Invalid constraint type", ENUM_HINT),
            ("something else", None),
        ],
    )
    def test_message_fallback(self, error, hint):
        assert select_hint([], error) == hint

    def test_enforcement_hint_lists_levels(self):
        for level in enum_values(EnforcementLevel):
            assert level in ENFORCEMENT_HINT


class TestBuildFeedback:
    def test_validation_failure_with_hint(self):
        failure = AttemptFailure(
            FailureKind.VALIDATION_FAILED,
            "Task validation failed: task.assignee: bad",
            [_issue("task.assignee", IssueCode.INVALID_TYPE)],
        )
        assert build_feedback(failure, 1, 3) == (
            f"VALIDATION ERROR GUIDANCE: {ASSIGNEE_HINT}\n\n"
            "Original error: Task validation failed: task.assignee: bad"
        )

    def test_validation_failure_without_hint(self):
        failure = AttemptFailure(FailureKind.VALIDATION_FAILED, "odd failure")
        feedback = build_feedback(failure, 1, 3)
        assert feedback.startswith("VALIDATION ERROR: odd failure\n\n")

    @pytest.mark.parametrize(
        "kind",
        [FailureKind.NOT_FOUND, FailureKind.UNKNOWN_TOOL, FailureKind.MODEL_UNAVAILABLE],
    )
    def test_other_failures_get_correction_prompt(self, kind):
        feedback = build_feedback(AttemptFailure(kind, "boom"), 2, 3)
        assert feedback.startswith("PREVIOUS ATTEMPT FAILED:\nError: boom\nAttempt: 2 of 3")
        assert "CORRECTION GUIDANCE:" in feedback


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestParseModelResponse:
    def test_plain_json(self):
        body = {"toolCalls": [{"tool": "deleteGoal", "params": {"goalId": "g"}}], "reasoning": "r"}
        plan = parse_model_response({"response": json.dumps(body)})
        assert plan.tool_calls == [ToolCall("deleteGoal", {"goalId": "g"})]
        assert plan.reasoning == "r"

    def test_fenced_json(self):
        text = '```json\n{"toolCalls": [{"tool": "deleteGoal", "params": {}}]}\n```'
        plan = parse_model_response({"response": text})
        assert [c.tool for c in plan.tool_calls] == ["deleteGoal"]
        assert plan.reasoning == ""

    def test_missing_params_default_to_empty(self):
        plan = parse_model_response({"response": '{"toolCalls": [{"tool": "x"}]}'})
        assert plan.tool_calls[0].params == {}

    def test_empty_tool_calls(self):
        assert parse_model_response({"response": '{"toolCalls": []}'}).tool_calls == []

    def test_non_string_reasoning_is_dropped(self):
        plan = parse_model_response({"response": '{"toolCalls": [], "reasoning": 5}'})
        assert plan.reasoning == ""

    @pytest.mark.parametrize(
        "reply, message",
        [
            ("raw text", "expected {'response': str}"),
            ({"response": 3}, "expected {'response': str}"),
            ({"response": "{nope"}, "Invalid LLM response format"),
            ({"response": "[]"}, "missing toolCalls array"),
            ({"response": '{"toolCalls": {}}'}, "missing toolCalls array"),
            ({"response": '{"toolCalls": [{"params": {}}]}'}, "toolCalls[0] has no tool name"),
            (
                {"response": '{"toolCalls": [{"tool": "x", "params": []}]}'},
                "toolCalls[0].params must be an object",
            ),
        ],
    )
    def test_malformed(self, reply, message):
        with pytest.raises(MalformedModelResponseError) as exc_info:
            parse_model_response(reply)
        assert message in str(exc_info.value)

    def test_clean_triple_backticks(self):
        assert clean_triple_backticks("```\n{}\n```") == "{}"
        assert clean_triple_backticks("  {}  ") == "{}"

    def test_backticks_inside_values_survive(self):
        body = {
            "toolCalls": [
                {"tool": "addTask", "params": {"task": {"description": "Run ```make test```"}}}
            ]
        }
        for text in (json.dumps(body), "```json\n" + json.dumps(body) + "\n```"):
            plan = parse_model_response({"response": text})
            assert plan.tool_calls[0].params["task"]["description"] == "Run ```make test```"
