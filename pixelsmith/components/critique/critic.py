"""
Critic that scores a rendered layout against the reference image.
"""

import json
from typing import Any, Dict, List, Optional

from pixelsmith.components.critique.prompt import CRITIC_SYSTEM_PROMPT, CRITIC_EXECUTION_PROMPT
from pixelsmith.config import config
from pixelsmith.constants import (
    RECOMMEND_ACCEPT,
    RECOMMEND_REFINE,
    RECOMMEND_REGENERATE,
    SEVERITY_MINOR,
    SEVERITY_MODERATE,
    SEVERITY_CRITICAL,
)
from pixelsmith.exceptions import CriticError
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import ComponentSummary, Critique, Discrepancy, FileInput
from pixelsmith.utils.decode import Malformed, decode_json, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Critic")

REGENERATE_BELOW = 70
_SEVERITIES = (SEVERITY_MINOR, SEVERITY_MODERATE, SEVERITY_CRITICAL)
_RECOMMENDATIONS = (RECOMMEND_ACCEPT, RECOMMEND_REFINE, RECOMMEND_REGENERATE)


class Critic:
    """Critic that evaluates visual fidelity and proposes per-component corrections."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        cfg = config.get_critic_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialized Critic with model={self.model}", correlation_id="INIT")

    async def run(
        self,
        reference: FileInput,
        rendered: FileInput,
        components: List[ComponentSummary],
        target_fidelity: float,
        correlation_id: Optional[str] = None
    ) -> Critique:
        """Compare reference vs render. An unparseable reply scores 0 and recommends regeneration."""
        if not reference.is_image or not rendered.is_image:
            raise CriticError("critique requires two images")

        raw_output = await self.llm_client.invoke(
            CRITIC_EXECUTION_PROMPT.format(
                target_fidelity=target_fidelity,
                components=json.dumps([c.model_dump(exclude_none=True) for c in components], indent=2),
            ),
            attachments=[reference, rendered],
            system_prompt=CRITIC_SYSTEM_PROMPT,
            correlation_id=correlation_id
        )

        decoded = decode_json(raw_output)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Critique unparseable ({decoded.reason}). Preview: {preview(decoded.raw)}",
                correlation_id=correlation_id
            )
            return Critique(
                fidelity_score=0,
                overall_assessment="Critique could not be parsed",
                recommendation=RECOMMEND_REGENERATE,
            )

        critique = parse_critique(decoded.value, target_fidelity)
        logger.info(
            f"Critique -> fidelity={critique.fidelity_score} recommendation={critique.recommendation} "
            f"discrepancies={len(critique.discrepancies)}",
            correlation_id=correlation_id
        )
        return critique


def parse_critique(raw: Dict[str, Any], target_fidelity: float) -> Critique:
    """Coerce a raw critique reply; a missing recommendation is derived from the score."""
    score = raw.get("fidelityScore")
    score = float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else 0.0
    score = max(0.0, min(score, 100.0))

    discrepancies = [
        _parse_discrepancy(d) for d in raw.get("discrepancies") or [] if isinstance(d, dict)
    ]

    recommendation = raw.get("recommendation")
    if recommendation not in _RECOMMENDATIONS:
        if score >= target_fidelity or (discrepancies and all(d.severity == SEVERITY_MINOR for d in discrepancies)):
            recommendation = RECOMMEND_ACCEPT
        elif score < REGENERATE_BELOW:
            recommendation = RECOMMEND_REGENERATE
        else:
            recommendation = RECOMMEND_REFINE

    assessment = raw.get("overallAssessment") or raw.get("summary") or "No assessment provided"
    return Critique(
        fidelity_score=score,
        overall_assessment=str(assessment),
        discrepancies=discrepancies,
        recommendation=recommendation,
    )


def _parse_discrepancy(raw: Dict[str, Any]) -> Discrepancy:
    severity = raw.get("severity")
    correction = raw.get("correctionJSON")
    return Discrepancy(
        component_id=str(raw.get("componentId") or "unknown"),
        issue=str(raw.get("issue") or "Unknown issue"),
        severity=severity if severity in _SEVERITIES else SEVERITY_MODERATE,
        expected=str(raw.get("expected") or ""),
        actual=str(raw.get("actual") or ""),
        correction=correction if isinstance(correction, dict) else None,
    )


def format_critique(critique: Critique) -> str:
    """Critique as plain text, appended to builder instructions on regeneration."""
    lines = [
        f"VISUAL CRITIQUE (fidelity {critique.fidelity_score:.0f}/100): {critique.overall_assessment}",
    ]
    for d in critique.discrepancies:
        line = f"- [{d.severity}] {d.component_id}: {d.issue}"
        if d.expected or d.actual:
            line += f" (expected {d.expected or '?'}, got {d.actual or '?'})"
        if d.correction:
            line += f" fix: {json.dumps(d.correction)}"
        lines.append(line)
    return "\n".join(lines)
