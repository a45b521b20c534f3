"""
Tests de la soumission de preuve.

La preuve force le statut "review" et stampe toujours un score qualité,
réel ou de repli.
"""

import pytest
from datetime import datetime
from unittest.mock import patch

from conftest import auth_headers, create_task, create_user
from teamflow.models.ai_trace import AITrace
from teamflow.models.evidence import Evidence
from teamflow.models.task import Task
from teamflow.services.ai_service import AnalysisOutcome, QUALITY_FALLBACK
from teamflow.services.evidence_service import compute_lateness, submit_evidence, summarize_evidences


# ============ LATENESS ============

def test_lateness_full_days():
    assert compute_lateness(datetime(2024, 1, 10), datetime(2024, 1, 15)) == (True, 5)


def test_lateness_partial_day_rounds_up():
    assert compute_lateness(datetime(2024, 1, 10), datetime(2024, 1, 10, 1)) == (True, 1)


@pytest.mark.parametrize("due, reference", [
    (None, datetime(2024, 1, 15)),
    (datetime(2024, 1, 15), datetime(2024, 1, 10)),
    (datetime(2024, 1, 15), datetime(2024, 1, 15)),
])
def test_not_late(due, reference):
    assert compute_lateness(due, reference) == (False, 0)


def test_summarize_evidences():
    evidences = [
        Evidence(file_type="pdf", description="Rapport"),
        Evidence(file_type="image", description="Capture"),
    ]
    assert summarize_evidences(evidences) == "[pdf] Rapport; [image] Capture"


# ============ SERVICE ============

def test_late_submission_passes_days_late(db, ai_gateway, pm, employee, project):
    task = create_task(project, pm, assignee=employee, due_date=datetime(2024, 1, 10), description="Faire X")
    task = db.query(Task).filter(Task.id == task.id).first()

    with patch("teamflow.services.evidence_service.analyze_task_quality",
               return_value=AnalysisOutcome(value=QUALITY_FALLBACK)) as mock_quality:
        submit_evidence(db, ai_gateway, task, employee, file_url="https://files/x.pdf",
                        description="Le rapport", now=datetime(2024, 1, 15))

    args = mock_quality.call_args.args
    assert args[1:] == (task.title, "Faire X", "Le rapport", True, 5)


def test_default_descriptions_in_prompt(db, ai_gateway, fake_provider, pm, employee, project):
    task = create_task(project, pm, assignee=employee)
    task = db.query(Task).filter(Task.id == task.id).first()

    submit_evidence(db, ai_gateway, task, employee, file_url="https://files/x.pdf")

    prompt = fake_provider.prompts[0]
    assert "No description" in prompt
    assert "Evidence submitted" in prompt
    assert "On Time" in prompt


# ============ API ============

def test_submit_evidence_forces_review_with_fallback(client, db, pm, employee, project):
    task = create_task(project, pm, assignee=employee, status="todo")

    response = client.post(
        f"/tasks/{task.id}/evidence",
        headers=auth_headers(employee),
        json={"file_url": "https://files/rapport.pdf", "file_type": "pdf", "description": "Rapport final"}
    )

    assert response.status_code == 201
    assert response.json()["task_id"] == task.id

    stored = db.query(Task).filter(Task.id == task.id).first()
    assert stored.status == "review"
    assert stored.quality_score == 70
    assert stored.quality_analysis == "AI Analysis unavailable currently. Please review manually."

    trace = db.query(AITrace).filter(AITrace.task_id == task.id).first()
    assert trace.analysis_type == "quality"
    assert trace.success is False


def test_submit_evidence_stores_ai_score(client, db, fake_provider, pm, employee, project):
    fake_provider.replies.append('```json\n{"score": 120, "analysis": "Parfait"}\n```')
    task = create_task(project, pm, assignee=employee, status="in_progress")

    client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"file_url": "https://f/1"})

    stored = db.query(Task).filter(Task.id == task.id).first()
    assert stored.status == "review"
    assert stored.quality_score == 100
    assert stored.quality_analysis == "Parfait"


def test_done_task_back_to_review(client, db, pm, employee, project):
    task = create_task(project, pm, assignee=employee, status="done")
    client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"file_url": "https://f/1"})
    assert db.query(Task).filter(Task.id == task.id).first().status == "review"


def test_evidence_requires_file_url(client, db, pm, employee, project):
    task = create_task(project, pm, assignee=employee)
    response = client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"description": "x"})

    assert response.status_code == 400
    assert db.query(Evidence).count() == 0


def test_evidence_on_unknown_task(client, employee):
    response = client.post(
        "/tasks/00000000-0000-0000-0000-000000000000/evidence",
        headers=auth_headers(employee),
        json={"file_url": "https://f/1"}
    )
    assert response.status_code == 404


def test_evidence_on_other_employee_task(client, pm, employee, project):
    other = create_user("employee")
    task = create_task(project, pm, assignee=other)
    response = client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"file_url": "https://f/1"})
    assert response.status_code == 403


def test_list_evidence(client, pm, employee, project):
    task = create_task(project, pm, assignee=employee)
    client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"file_url": "https://f/1"})
    client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"file_url": "https://f/2"})

    response = client.get(f"/tasks/{task.id}/evidence", headers=auth_headers(pm))
    assert [e["file_url"] for e in response.json()] == ["https://f/1", "https://f/2"]

    detail = client.get(f"/tasks/{task.id}", headers=auth_headers(employee)).json()
    assert len(detail["evidences"]) == 2
