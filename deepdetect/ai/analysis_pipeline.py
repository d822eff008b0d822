"""
analysis_pipeline.py — Video → structured deepfake analysis, in four stages.

  Stage 1  run_text_analysis()  — one multimodal call (prompt + inline video)
                                  returning JSON; validated against TextAnalysis.
  Stage 2  generate_visuals()   — five image prompts built from stage 1's fields,
                                  issued concurrently. Fail-fast: the first
                                  failure cancels the rest and voids the stage.
  Stage 3  assemble_result()    — pure merge of stage 1 + stage 2 into the full
                                  AnalysisResult. Text fields are copied untouched.
  Entry    analyze()            — runs the stages in order. Every failure is
                                  logged with its cause and re-raised as
                                  AnalysisFailed; callers never see partial results.

Stage 2 cannot start without a validated stage 1 result (its prompts quote
that result), so a text failure means zero image calls.

Every backend call is bounded by settings.generation_timeout_seconds.
No retries: one failure ends the request and the user resubmits.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass

from pydantic import ValidationError

from deepdetect.ai.backends import ImageBackend, TextBackend
from deepdetect.ai.gemini_client import gemini_client
from deepdetect.ai.prompts import VISUAL_NAMES, build_analysis_prompt, build_visual_prompts
from deepdetect.core.config import settings
from deepdetect.core.errors import (
    AnalysisError,
    AnalysisFailed,
    GenerationUnavailable,
    PartialVisualFailure,
    SchemaViolation,
)
from deepdetect.models.analysis import AnalysisResult, Heatmaps, TextAnalysis
from deepdetect.models.media import AnalysisRequest

logger = logging.getLogger(__name__)


@dataclass
class VisualSet:
    """Artifact references produced by the image fan-out."""

    heatmaps: Heatmaps
    decision_tree: str


# ── Parsing helpers ────────────────────────────────────────────────────────────

def _parse_json(raw: str) -> dict | None:
    """Extract and parse the first JSON object found in `raw`."""
    m = re.search(r"\{[\s\S]*\}", raw)
    if not m:
        return None
    try:
        data = json.loads(m.group())
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _error_paths(exc: ValidationError) -> list[str]:
    return [".".join(str(p) for p in err["loc"]) for err in exc.errors()]


# ── Pipeline ──────────────────────────────────────────────────────────────────

class AnalysisPipeline:
    """
    Orchestrates text analysis, visual fan-out and assembly for one video.

    Stateless between calls: concurrent analyze() invocations share nothing
    but the backends, which handle their own concurrency.
    """

    def __init__(
        self,
        text_backend: TextBackend | None = None,
        image_backend: ImageBackend | None = None,
        timeout: float | None = None,
    ) -> None:
        self._text = text_backend or gemini_client
        self._images = image_backend or gemini_client
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else settings.generation_timeout_seconds

    # ── Stage 1 ────────────────────────────────────────────────────────────────

    async def run_text_analysis(self, request: AnalysisRequest) -> TextAnalysis:
        """
        Ask the text backend for the structured analysis and validate it.

        Raises:
            GenerationUnavailable: backend error, timeout, or empty output.
            SchemaViolation:       output is not a JSON object or fails TextAnalysis.
        """
        prompt = build_analysis_prompt(request)
        logger.info(
            "Starting text analysis (mime=%s, size=%d bytes, prompt=%d chars)",
            request.media_type, request.size, len(prompt),
        )

        try:
            raw = await asyncio.wait_for(
                self._text.generate_structured(prompt, request.b64, request.media_type),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationUnavailable(f"text analysis timed out after {self.timeout:g}s") from exc
        except Exception as exc:
            raise GenerationUnavailable(f"text backend error: {exc}") from exc

        if not raw or not raw.strip():
            raise GenerationUnavailable("text backend returned no output")

        data = _parse_json(raw)
        if data is None:
            raise SchemaViolation("text backend output is not a JSON object")

        try:
            text = TextAnalysis.model_validate(data)
        except ValidationError as exc:
            paths = _error_paths(exc)
            raise SchemaViolation(f"text analysis failed validation at {', '.join(paths)}", paths) from exc

        logger.info(
            "Text analysis complete: is_deepfake=%s confidence=%.2f",
            text.is_deepfake, text.confidence_score,
        )
        return text

    # ── Stage 2 ────────────────────────────────────────────────────────────────

    async def _render(self, name: str, prompt: str) -> str:
        try:
            ref = await asyncio.wait_for(self._images.generate_image(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise PartialVisualFailure(name, f"timed out after {self.timeout:g}s") from exc
        except Exception as exc:
            raise PartialVisualFailure(name, f"image backend error: {exc}") from exc
        if not ref:
            raise PartialVisualFailure(name, "image backend returned no image")
        return ref

    async def generate_visuals(self, text: TextAnalysis) -> VisualSet:
        """
        Generate the four heatmaps and the decision tree concurrently.

        All-or-nothing: the first failure cancels the outstanding requests and
        raises PartialVisualFailure.
        """
        prompts = build_visual_prompts(text)
        logger.info("Starting visual fan-out (%d requests)", len(prompts))

        tasks = [asyncio.ensure_future(self._render(name, prompts[name])) for name in VISUAL_NAMES]
        try:
            refs = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            # Let cancelled tasks unwind before the error leaves this frame.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        by_name = dict(zip(VISUAL_NAMES, refs))
        logger.info("Visual fan-out complete")
        return VisualSet(
            heatmaps=Heatmaps(
                attention=by_name["attention"],
                anomaly=by_name["anomaly"],
                temporal=by_name["temporal"],
                feature_importance=by_name["feature_importance"],
            ),
            decision_tree=by_name["decision_tree"],
        )

    # ── Entry point ────────────────────────────────────────────────────────────

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Run the full pipeline for one video.

        Raises:
            AnalysisFailed: on any failure, with a user-safe message. The
                            internal cause is logged and chained, not exposed.
        """
        try:
            request.validate()
            text = await self.run_text_analysis(request)
            visuals = await self.generate_visuals(text)
            result = assemble_result(text, visuals)
        except AnalysisError as exc:
            logger.error("Deepfake analysis failed (%s): %s", type(exc).__name__, exc)
            raise AnalysisFailed() from exc
        except Exception as exc:
            logger.exception("Unexpected error during deepfake analysis")
            raise AnalysisFailed() from exc

        logger.info(
            "Analysis pipeline complete: is_deepfake=%s confidence=%.2f",
            result.is_deepfake, result.confidence_score,
        )
        return result


# ── Stage 3 ───────────────────────────────────────────────────────────────────

def assemble_result(text: TextAnalysis, visuals: VisualSet) -> AnalysisResult:
    """Merge the validated text analysis with the generated visual references."""
    data = text.model_dump()
    data["heatmaps"] = visuals.heatmaps.model_dump()
    data["explainability"]["decision_tree"] = visuals.decision_tree
    return AnalysisResult.model_validate(data)


# Module-level singleton
analysis_pipeline = AnalysisPipeline()


async def analyze(payload: bytes, media_type: str) -> AnalysisResult:
    """Analyse raw video bytes with the default Gemini-backed pipeline."""
    return await analysis_pipeline.analyze(AnalysisRequest(payload=payload, media_type=media_type))
