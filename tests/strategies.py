"""Hypothesis strategies for workflow documents.

Generated documents are always strictly valid: unique ids per
collection, dense goal orders, and dependencies that only point at
earlier tasks.
"""

from hypothesis import strategies as st

from flowedit.models.workflow import ConstraintType, EnforcementLevel, FormType

# Readable, non-empty text without characters that matter to the validator
text = st.text(
    min_size=1,
    max_size=40,
    alphabet=st.characters(whitelist_categories=("L", "N", "Zs")),
)

assignees = st.one_of(
    st.builds(dict, type=st.just("human"), role=text),
    st.builds(dict, type=st.just("ai_agent"), model=st.sampled_from(["gpt-4o", "gpt-4o-mini"])),
)

constraint_bodies = st.fixed_dictionaries(
    {
        "description": text,
        "type": st.sampled_from([t.value for t in ConstraintType]),
        "enforcement": st.sampled_from([e.value for e in EnforcementLevel]),
    }
)

policy_bodies = st.fixed_dictionaries(
    {
        "name": text,
        "if": st.one_of(
            st.builds(dict, condition=text),
            st.builds(dict, field=text, operator=st.just("equals"), value=text),
        ),
        "then": st.builds(dict, action=text, params=st.just({})),
    }
)

form_bodies = st.fixed_dictionaries(
    {
        "name": text,
        "type": st.just(FormType.CONVERSATIONAL.value),
        "initial_prompt": text,
    }
)

task_bodies = st.fixed_dictionaries({"description": text, "assignee": assignees})


@st.composite
def documents(draw, max_goals: int = 4, max_children: int = 3) -> dict:
    """A strictly valid document with sequential ids."""
    goal_count = draw(st.integers(min_value=1, max_value=max_goals))
    counters = {"const": 0, "pol": 0, "task": 0, "form": 0}
    task_ids: list[str] = []

    def next_id(prefix: str) -> str:
        counters[prefix] += 1
        return f"{prefix}{counters[prefix]}"

    goals = []
    for position in range(1, goal_count + 1):
        tasks = []
        for body in draw(st.lists(task_bodies, max_size=max_children)):
            task = {**body, "id": next_id("task")}
            if task_ids:
                task["depends_on"] = draw(
                    st.lists(st.sampled_from(task_ids), max_size=2, unique=True)
                )
            tasks.append(task)
            task_ids.append(task["id"])
        goals.append(
            {
                "id": f"goal{position}",
                "name": draw(text),
                "description": draw(text),
                "order": position,
                "constraints": [
                    {**c, "id": next_id("const")}
                    for c in draw(st.lists(constraint_bodies, max_size=max_children))
                ],
                "policies": [
                    {**p, "id": next_id("pol")}
                    for p in draw(st.lists(policy_bodies, max_size=max_children))
                ],
                "tasks": tasks,
                "forms": [
                    {**f, "id": next_id("form")}
                    for f in draw(st.lists(form_bodies, max_size=max_children))
                ],
            }
        )

    return {
        "id": "wf_generated",
        "name": draw(text),
        "version": "2.0",
        "objective": draw(text),
        "metadata": {
            "author": "hypothesis",
            "created_at": "2024-01-01T00:00:00.000Z",
            "last_modified": "2024-01-01T00:00:00.000Z",
            "tags": [],
        },
        "goals": goals,
    }
