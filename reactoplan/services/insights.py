"""Service for best-effort management commentary on occupancy metrics."""

from __future__ import annotations

import json
import logging
from typing import Sequence

from reactoplan.config import get_settings
from reactoplan.domain.models import OccupancyMetric

logger = logging.getLogger(__name__)

_PROMPT = """\
Analyze the following reactor occupancy data for the manufacturing facility.
Provide 3 high-level management bullet points regarding:
1. Overall capacity utilization (Proposed vs Actual).
2. Any specific blocks or reactors that are bottlenecks or underutilized.
3. Maintenance impact on availability.

Data: {data}
Keep the tone professional and concise.
"""


def _digest(metrics: Sequence[OccupancyMetric]) -> str:
    return json.dumps(
        [
            {
                "reactor": m.reactor_serial_no,
                "block": m.block_name,
                "proposed": f"{m.proposed_percent:.1f}",
                "actual": f"{m.actual_percent:.1f}",
                "downtime": round(m.downtime_hours, 1),
            }
            for m in metrics
        ]
    )


def _generate_with_llm(prompt: str) -> str:
    """Call OpenAI for free-text commentary."""
    from openai import OpenAI

    settings = get_settings()
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not configured")

    client = OpenAI(api_key=settings.openai_api_key)
    response = client.chat.completions.create(
        model=settings.insights_model,
        messages=[{"role": "user", "content": prompt}],
        temperature=0.2,
    )
    content = response.choices[0].message.content
    if not content:
        raise RuntimeError("Empty response from insights model")
    return content


def generate_insights(metrics: Sequence[OccupancyMetric]) -> str:
    """Return commentary for *metrics*, or the configured fallback text on any failure."""
    prompt = _PROMPT.format(data=_digest(metrics))
    try:
        return _generate_with_llm(prompt)
    except Exception:
        logger.warning("Insight generation failed", exc_info=True)
        return get_settings().insights_fallback
