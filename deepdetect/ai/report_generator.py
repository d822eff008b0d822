"""
report_generator.py — Plain-language report from a summary of analysis findings.

Secondary flow next to the main pipeline: the caller already knows the
process, abnormalities, likely methods and confidence, and wants them written
up for a non-technical reader. One text call, no schema.
"""

import asyncio
import logging

from deepdetect.ai.gemini_client import GeminiClient, gemini_client
from deepdetect.core.config import settings
from deepdetect.core.errors import GenerationUnavailable
from deepdetect.models.api import ReportRequest

logger = logging.getLogger(__name__)

_REPORT_PROMPT = """\
You are an expert in deepfake detection and analysis. Generate a detailed report based on the following information:

Analysis Process: {analysis_process}
Detected Abnormalities: {detected_abnormalities}
Potential Deepfake Methods: {potential_methods}
Confidence Score: {confidence_score}

Compose a report summarizing the findings, explaining the analysis process, highlighting detected \
abnormalities, discussing potential deepfake methods, and stating the confidence score. The report \
should be comprehensive and easy to understand for a non-technical audience."""


def build_report_prompt(payload: ReportRequest) -> str:
    return _REPORT_PROMPT.format(
        analysis_process=payload.analysis_process,
        detected_abnormalities=payload.detected_abnormalities,
        potential_methods=payload.potential_methods,
        confidence_score=payload.confidence_score,
    )


async def generate_report(payload: ReportRequest, client: GeminiClient | None = None) -> str:
    """
    Raises:
        GenerationUnavailable: backend error, timeout, or empty output.
    """
    client = client or gemini_client
    prompt = build_report_prompt(payload)
    try:
        report = await asyncio.wait_for(
            client.generate(prompt, response_key="deepfake_report"),
            timeout=settings.generation_timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        raise GenerationUnavailable("report generation timed out") from exc
    except Exception as exc:
        raise GenerationUnavailable(f"report backend error: {exc}") from exc

    if not report or not report.strip():
        raise GenerationUnavailable("report backend returned no output")

    logger.info("Generated report (%d chars)", len(report))
    return report.strip()
