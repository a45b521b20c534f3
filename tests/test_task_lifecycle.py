"""Tests des règles de cycle de vie (table de politique par rôle)."""

import pytest
from datetime import datetime

from teamflow.models.task import Task
from teamflow.services.task_lifecycle import apply_task_update, resolve_status, writable_fields

NOW = datetime(2024, 3, 1, 12, 0, 0)


def _task(**fields):
    return Task(title="Tâche", status="in_progress", priority="medium", **fields)


def test_employee_done_becomes_review():
    task = _task()
    applied = apply_task_update(task, {"status": "done"}, "employee", now=NOW)

    assert task.status == "review"
    assert task.completed_date is None
    assert "completed_date" not in applied


@pytest.mark.parametrize("role", ["pm", "hr"])
def test_privileged_done_stamps_completed_date(role):
    task = _task()
    apply_task_update(task, {"status": "done"}, role, now=NOW)

    assert task.status == "done"
    assert task.completed_date == NOW


@pytest.mark.parametrize("status", ["todo", "in_progress", "review"])
def test_any_role_sets_other_statuses(status):
    task = _task()
    apply_task_update(task, {"status": status}, "employee", now=NOW)
    assert task.status == status


def test_employee_restricted_fields_ignored():
    due = datetime(2024, 4, 1)
    task = _task(due_date=due, assignee_id="a" * 36)

    applied = apply_task_update(
        task,
        {"title": "Pirate", "due_date": datetime(2030, 1, 1), "assignee_id": "unassigned", "risk_level": "low", "actual_hours": 3},
        "employee",
        now=NOW,
    )

    assert task.title == "Tâche"
    assert task.due_date == due
    assert task.assignee_id == "a" * 36
    assert task.risk_level is None
    assert task.actual_hours == 3
    assert set(applied) == {"actual_hours", "updated_at"}


def test_privileged_unassign():
    task = _task(assignee_id="a" * 36)
    apply_task_update(task, {"assignee_id": "unassigned", "title": None}, "pm", now=NOW)

    assert task.assignee_id is None
    assert task.title == "Tâche"


def test_updated_at_always_stamped():
    task = _task()
    applied = apply_task_update(task, {}, "employee", now=NOW)
    assert task.updated_at == NOW
    assert applied == {"updated_at": NOW}


def test_policy_table():
    assert writable_fields("employee") == {"status", "actual_hours"}
    assert {"title", "due_date", "assignee_id", "risk_level"} <= writable_fields("hr")
    assert resolve_status("done", "pm") == "done"
