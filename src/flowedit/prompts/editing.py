"""Prompts for the workflow editing agent.

Provides the capability description, the document summary template,
retry feedback templates, and per-tool usage examples. Builders here
only format text; redaction of user and document content happens in
the agent before anything reaches these functions.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

WORKFLOW_AGENT_SYSTEM_PROMPT = """You are a specialized workflow editing agent that modifies workflow documents through natural language commands.

CORE MISSION:
Transform user requests into precise, validated tool calls that safely modify the workflow while preserving data integrity and semantic meaning.

CRITICAL SAFETY RULES:
1. ONLY respond with valid tool calls from the provided tool list
2. NEVER generate code, SQL, scripts, or any executable content
3. NEVER attempt to access external systems or make network requests
4. ALWAYS match tool calls to the exact tool definitions

AVAILABLE TOOLS:
{tool_names}

RESPONSE FORMAT - YOU MUST FOLLOW THIS EXACTLY:
{{
  "toolCalls": [
    {{
      "tool": "exactToolName",
      "params": {{ "...": "exact parameters matching the tool schema" }}
    }}
  ],
  "reasoning": "Brief explanation of how these tool calls accomplish the user's request"
}}

SEMANTIC UNDERSTANDING:
- "Add/Create" -> addGoal, addTask, addConstraint, addPolicy, addForm
- "Update/Modify/Change" -> updateGoal, updateTask, updateConstraint, updatePolicy, updateForm
- "Delete/Remove" -> deleteGoal, deleteTask, deleteConstraint, deletePolicy, deleteForm
- "Move/Transfer" -> moveElementBetweenGoals
- "Copy/Duplicate" -> duplicateGoal
- "Reorder" -> reorderGoals

ID MANAGEMENT RULES:
- When creating new elements: omit the id and let the system generate one
- When updating elements: ALWAYS use the existing id; ids never change
- When duplicating: the system generates new ids for every copied element
- depends_on may only name task ids that already exist

VALIDATION REQUIREMENTS:
- Tool names must match the available tools exactly
- Parameters must conform to the tool parameter schemas
- Required fields must be present
- Strings, numbers, arrays, and objects must have the expected types
- Enum values must come from the allowed lists

WORKFLOW ELEMENT TYPES:
1. Goals: High-level objectives with an order, containing the other elements
2. Tasks: Work items assigned to humans or AI agents
3. Constraints: Rules and boundaries that must be followed
4. Policies: If-then logic for automated decision making
5. Forms: Data collection mechanisms (structured, conversational, automated)

If nothing in the request maps to a tool, respond with an empty toolCalls array.

Remember: You are a precise tool orchestrator, not a creative writer. Focus on accuracy and safety."""

WORKFLOW_SUMMARY_TEMPLATE = """CURRENT WORKFLOW CONTEXT:
Name: {name}
Version: {version}
Total Goals: {goal_count}
Total Elements: {element_count}

GOALS BREAKDOWN:
{goals_breakdown}

METADATA:
- Author: {author}
- Last Modified: {last_modified}
- Tags: {tags}"""

GOAL_LINE_TEMPLATE = (
    '  {position}. "{name}" [id: {goal_id}] ({constraints} constraints, '
    "{policies} policies, {tasks} tasks, {forms} forms)"
)

ERROR_CORRECTION_PROMPT = """PREVIOUS ATTEMPT FAILED:
Error: {error}
Attempt: {attempt} of {max_attempts}

CORRECTION GUIDANCE:
- Review the error message carefully
- Check parameter types and required fields
- Ensure tool names are exact matches
- Verify enum values are from allowed lists
- Consider if the request needs to be broken into smaller steps

Please analyze the error and provide corrected tool calls."""

VALIDATION_GUIDANCE_PROMPT = """VALIDATION ERROR GUIDANCE: {guidance}

Original error: {error}"""

VALIDATION_FALLBACK_PROMPT = """VALIDATION ERROR: {error}

Please review the workflow schema requirements and ensure all fields are properly formatted."""

TOOL_USAGE_EXAMPLES: dict[str, str] = {
    "addGoal": """Example: "Add a goal called 'User Verification'"
Tool Call: {
  "tool": "addGoal",
  "params": {
    "goal": {
      "name": "User Verification",
      "description": "Verify user identity and credentials",
      "constraints": [],
      "policies": [],
      "tasks": [],
      "forms": []
    }
  }
}""",
    "addTask": """Example: "Add an email validation task to the user registration goal"
Tool Call: {
  "tool": "addTask",
  "params": {
    "goalId": "goal_user_registration",
    "task": {
      "description": "Validate user email address",
      "assignee": {
        "type": "ai_agent",
        "model": "email_validator_v1"
      }
    }
  }
}""",
    "addConstraint": """Example: "Add a 30-minute time limit to the verification goal"
Tool Call: {
  "tool": "addConstraint",
  "params": {
    "goalId": "goal_verification",
    "constraint": {
      "description": "Process must complete within 30 minutes",
      "type": "time_limit",
      "enforcement": "hard_stop",
      "value": 30
    }
  }
}""",
    "updateTask": """Example: "Change the email task timeout to 60 minutes"
Tool Call: {
  "tool": "updateTask",
  "params": {
    "taskId": "task_email_validation",
    "updates": {
      "timeout_minutes": 60
    }
  }
}""",
}


def build_system_prompt(tool_names: Iterable[str], tool_schemas: list[dict]) -> str:
    """Capability description plus full tool schemas and usage examples.

    Args:
        tool_names: Wire names of the available tools.
        tool_schemas: ``{name, description, parameters}`` dicts.

    Returns:
        The complete system context string.
    """
    head = WORKFLOW_AGENT_SYSTEM_PROMPT.format(tool_names=", ".join(tool_names))
    return (
        f"{head}\n\n"
        f"COMPLETE TOOL DEFINITIONS:\n{json.dumps(tool_schemas, indent=2)}\n\n"
        f"TOOL USAGE EXAMPLES:\n" + "\n\n".join(TOOL_USAGE_EXAMPLES.values())
    )


def build_user_prompt(summary: str, request: str, feedback: str | None = None) -> str:
    """Document summary, quoted request, and retry feedback when present."""
    prompt = (
        f"{summary}\n\n"
        f'USER REQUEST: "{request}"\n\n'
        "Please respond with the appropriate tool calls to fulfill the user's request."
    )
    if feedback:
        prompt += f"\n\n{feedback}"
    return prompt


def build_error_correction_prompt(error: str, attempt: int, max_attempts: int) -> str:
    return ERROR_CORRECTION_PROMPT.format(
        error=error, attempt=attempt, max_attempts=max_attempts
    )
