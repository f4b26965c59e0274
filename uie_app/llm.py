"""LLM helper for generating urban planning suggestions from a snapshot."""

from __future__ import annotations

import json
import os
from typing import Dict, Optional

from loguru import logger
from openai import OpenAI, OpenAIError

from .classifier import action_status
from .indices import get_definition, order_by_planning_priority, planner_name
from .models import CityHealthSnapshot

MODEL_NAME = "gpt-5-nano"

INSTRUCTIONS = (
    "You are an urban planning strategist. "
    "Analyse the provided city metrics and deliver a concise, actionable plan. "
    "Prioritise the top risks, mention specific interventions, and end with one data follow-up."
)


class LLMUnavailable(RuntimeError):
    """Raised when the LLM cannot be contacted."""


def _client(api_key: Optional[str] = None) -> OpenAI:
    api_key = api_key or os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise LLMUnavailable(
            "OPENAI_API_KEY environment variable is not set. "
            "Provide a key before requesting AI recommendations."
        )
    return OpenAI(api_key=api_key)


def snapshot_payload(snapshot: CityHealthSnapshot) -> Dict:
    """Metrics of ``snapshot`` in planning priority order, ready for a prompt."""

    indicators = []
    for key in order_by_planning_priority(snapshot.indices):
        index = snapshot.indices[key]
        status = snapshot.statuses[key]
        indicators.append(
            {
                "indicator": planner_name(key),
                "score": index.total_score,
                "target": index.target,
                "target_label": get_definition(key).target_label,
                "status": status.band.value,
                "readiness": action_status(status.progress_pct).label,
            }
        )
    return {
        "location": snapshot.place_name or snapshot.location.to_dict(),
        "overall_score": snapshot.overall_score,
        "health_status": snapshot.health_status,
        "data_quality": snapshot.data_quality.value,
        "synthetic_fields": list(snapshot.sample.synthetic_fields),
        "indicators": indicators,
    }


def build_prompt(payload: Dict) -> str:
    """Format the metrics payload into a readable prompt."""

    pretty_payload = json.dumps(payload, indent=2, ensure_ascii=False)
    guidance = (
        "Using the metrics below, outline up to three priority actions for urban planners. "
        "Reference the key indicators driving each action. Close with one suggested data follow-up.\n\n"
    )
    return guidance + pretty_payload


def generate_planning_advice(prompt: str, client: Optional[OpenAI] = None) -> str:
    """Call the OpenAI Responses API and return the generated advice."""

    client = client or _client()
    try:
        response = client.responses.create(model=MODEL_NAME, input=prompt, instructions=INSTRUCTIONS)
    except OpenAIError as exc:
        raise LLMUnavailable(f"LLM request failed: {exc}") from exc

    content = response.output_text or ""
    return content.strip()


def planning_advice(snapshot: CityHealthSnapshot, client: Optional[OpenAI] = None) -> str:
    """Generate planning advice for the given snapshot."""

    prompt = build_prompt(snapshot_payload(snapshot))
    logger.info("Requesting planning advice from {}", MODEL_NAME)
    return generate_planning_advice(prompt, client=client)


__all__ = [
    "LLMUnavailable",
    "build_prompt",
    "generate_planning_advice",
    "planning_advice",
    "snapshot_payload",
]
