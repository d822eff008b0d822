"""
errors.py — Failure taxonomy for the analysis pipeline.

Internal kinds (raised inside the pipeline, never returned to callers):

  InvalidRequest        — empty / malformed payload or unsupported media type.
                          Raised before any network call.
  GenerationUnavailable — backend unreachable, timed out, or returned nothing.
  SchemaViolation       — backend output failed structural / range validation.
  PartialVisualFailure  — one of the five concurrent image calls failed.

Boundary kind:

  AnalysisFailed        — the single condition surfaced by analyze(). Carries
                          a user-safe message only; the internal cause is
                          chained (__cause__) and logged, never serialised.
"""

GENERIC_FAILURE_MESSAGE = (
    "Failed to analyze the video. The model may be unavailable or the input might be invalid."
)


class AnalysisError(Exception):
    """Base class for every pipeline failure."""


class InvalidRequest(AnalysisError):
    pass


class GenerationUnavailable(AnalysisError):
    pass


class SchemaViolation(AnalysisError):
    """Backend output did not conform to the expected schema."""

    def __init__(self, message: str, paths: list[str] | None = None) -> None:
        super().__init__(message)
        self.paths = paths or []  # e.g. ["timelineAnalysis.confidenceGraph"]


class PartialVisualFailure(AnalysisError):
    """A visualisation request failed; the whole fan-out is void."""

    def __init__(self, visual: str, message: str) -> None:
        super().__init__(f"{visual}: {message}")
        self.visual = visual


class AnalysisFailed(AnalysisError):
    """Umbrella failure returned across the analyze() boundary."""

    def __init__(self, user_message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(user_message)
        self.user_message = user_message
