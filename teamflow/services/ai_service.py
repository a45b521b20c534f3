"""
Analyses IA - découpage de tâche, risque de charge, scan de risque, qualité.

Chaque fonction construit un prompt, appelle le gateway, parse la réponse
et renvoie un AnalysisOutcome. Les erreurs ne remontent jamais en
exception: l'appelant applique le fallback documenté avec unwrap_or().
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import ValidationError

from teamflow.schemas.ai import BatchRiskItem, QualityAssessment, TaskBreakdown, WorkloadRisk
from teamflow.services.ai_parser import ResponseParseError, parse_json, parse_model
from teamflow.services.ai_providers import AIGateway, AllProvidersFailedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ============ FALLBACKS ============

BREAKDOWN_FALLBACK = TaskBreakdown(
    subtasks=[],
    risk_analysis="AI breakdown failed. Please review manually.",
    estimated_total_hours=0,
)
WORKLOAD_RISK_FALLBACK = WorkloadRisk(risk_level="low", insight="AI analysis unavailable")
BATCH_RISK_FALLBACK: List[BatchRiskItem] = []
# valeur "ne bloque pas le workflow", pas une vraie évaluation
QUALITY_FALLBACK = QualityAssessment(
    score=70,
    analysis="AI Analysis unavailable currently. Please review manually.",
)

RISKY_LEVELS = {"high", "critical"}


@dataclass
class AnalysisError:
    kind: str  # "provider" | "parse"
    message: str


@dataclass
class AnalysisOutcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[AnalysisError] = None
    provider: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, fallback: T) -> T:
        return self.value if self.error is None else fallback


def _run(gateway: AIGateway, prompt: str, parse, label: str) -> AnalysisOutcome:
    try:
        completion = gateway.complete(prompt)
    except AllProvidersFailedError as e:
        logger.error(f"{label}: {e} {e.errors}")
        return AnalysisOutcome(error=AnalysisError("provider", str(e)))

    try:
        value = parse(completion.text)
    except ResponseParseError as e:
        logger.error(f"{label}: could not parse {completion.provider} response: {e}")
        return AnalysisOutcome(
            error=AnalysisError("parse", str(e)),
            provider=completion.provider,
            elapsed_ms=completion.elapsed_ms,
        )

    return AnalysisOutcome(value=value, provider=completion.provider, elapsed_ms=completion.elapsed_ms)


# ============ ANALYSES ============

def breakdown_task_description(gateway: AIGateway, description: str, title: str) -> AnalysisOutcome[TaskBreakdown]:
    prompt = f"""
    You are an expert Project Manager AI. I will provide a task title and description.
    Your job is to:
    1. Break down this task into smaller, actionable subtasks (max 5).
    2. Estimate hours for each subtask.
    3. Provide a brief risk analysis.

    Task Title: {title}
    Task Description: {description}

    Output specifically in this JSON format (no markdown):
    {{
      "subtasks": [{{"title": "Subtask 1", "estimatedHours": 2}}],
      "riskAnalysis": "Risk analysis text here...",
      "estimatedTotalHours": 10
    }}
    """
    return _run(gateway, prompt, lambda text: parse_model(text, TaskBreakdown), "Task breakdown")


def analyze_workload_risk(gateway: AIGateway, tasks: List[dict]) -> AnalysisOutcome[WorkloadRisk]:
    """tasks: [{title, dueDate, status}]"""
    prompt = f"""
    Analyze the following user workload and determine the risk level (low, medium, high, critical) of missing deadlines or burnout.
    Tasks: {json.dumps(tasks, default=str)}

    Output JSON:
    {{
      "riskLevel": "medium",
      "insight": "Explain why..."
    }}
    """
    return _run(gateway, prompt, lambda text: parse_model(text, WorkloadRisk), "Workload risk")


def _parse_batch_risks(text: str, known_ids: set) -> List[BatchRiskItem]:
    payload = parse_json(text)
    if not isinstance(payload, list):
        raise ResponseParseError("Batch risk response is not a JSON array")

    risks = []
    seen = set()
    for raw in payload:
        try:
            item = BatchRiskItem.model_validate(raw)
        except ValidationError:
            logger.warning(f"Ignoring malformed risk entry: {raw!r}")
            continue
        if item.task_id in seen:
            # une tâche citée deux fois: la première entrée valide fait foi
            logger.warning(f"Ignoring duplicate risk entry for task {item.task_id}")
            continue
        seen.add(item.task_id)
        # seulement les tâches envoyées et jugées risquées
        if item.task_id in known_ids and item.risk_level.value in RISKY_LEVELS:
            risks.append(item)
    return risks


def analyze_batch_tasks_risk(
    gateway: AIGateway,
    tasks: List[dict],
    today: Optional[datetime] = None,
) -> AnalysisOutcome[List[BatchRiskItem]]:
    """tasks: [{id, title, dueDate, status}] - renvoie seulement les tâches high/critical."""
    if not tasks:
        return AnalysisOutcome(value=[])

    today = today or datetime.utcnow()
    prompt = f"""
    You are a project risk analyzer. Review these tasks (Today is {today.date().isoformat()}):
    {json.dumps(tasks, default=str)}

    Identify tasks that are at "high" or "critical" risk of missing deadlines.
    Ignore tasks that are "done".

    Return a JSON array ONLY for risky tasks:
    [
      {{ "taskId": "...", "riskLevel": "high", "reason": "Deadline in 2 days but status is todo" }}
    ]
    If no risky tasks, return [].
    """
    known_ids = {t["id"] for t in tasks}
    return _run(gateway, prompt, lambda text: _parse_batch_risks(text, known_ids), "Batch risk analysis")


def analyze_task_quality(
    gateway: AIGateway,
    task_title: str,
    task_description: str,
    evidence_description: str,
    is_late: bool,
    days_late: int,
) -> AnalysisOutcome[QualityAssessment]:
    timeliness = f"Late by {days_late} days" if is_late else "On Time"
    prompt = f"""
    You are a strict QA Manager. Evaluate the quality of this completed task.

    TASK: "{task_title}"
    REQUIREMENTS: "{task_description}"
    EVIDENCE SUBMITTED: "{evidence_description}"
    TIMELINESS: {timeliness}

    Rate the quality on a scale of 0-100 based on:
    1. Alignment with requirements (Did they do what was asked?).
    2. Clarity of evidence provided.
    3. Timeliness (Penalize heavily if late).

    Return JSON ONLY:
    {{
      "score": 85,
      "analysis": "Good work, met all requirements. Evidence is clear. Perfect timing."
    }}
    """
    return _run(gateway, prompt, lambda text: parse_model(text, QualityAssessment), "Quality analysis")
