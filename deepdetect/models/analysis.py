"""
analysis.py — Pydantic schema for the deepfake analysis result.

This is the single canonical definition of the result shape. Field names are
snake_case in Python and camelCase on the wire (alias generator), which is
what the text model is asked to produce and what the front end renders.

Two views:
  AnalysisResult — the full object returned to callers
  TextAnalysis   — AnalysisResult minus the visual artifact references,
                   derived with omit_fields(); this is the shape requested
                   from the text model before any images exist

Bounds declared here (ranges, list cardinalities) are also quoted verbatim in
the analysis prompt, so the model is asked for exactly what we validate.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from deepdetect.models.schema import omit_fields, project

TIMELINE_MIN_POINTS = 20
TIMELINE_MAX_POINTS = 30
MIN_SUSPICIOUS_SEGMENTS = 1
MAX_SUSPICIOUS_SEGMENTS = 3

# Fields filled by the image fan-out rather than the text model.
VISUAL_FIELDS = ("heatmaps", "explainability.decision_tree")


class _WireModel(BaseModel):
    """Base for every result record: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Sophistication(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


# ── Sub-records ───────────────────────────────────────────────────────────────

class EvidenceBreakdown(_WireModel):
    """Contribution of each evidence family to the verdict. The sum is advisory."""

    facial_inconsistency: float = Field(
        ge=0, description="Contribution score from facial inconsistencies (e.g. 0.4 for 40%)."
    )
    temporal_anomalies: float = Field(
        ge=0, description="Contribution score from temporal anomalies (e.g. 0.3 for 30%)."
    )
    audio_mismatch: float = Field(
        ge=0, description="Contribution score from audio mismatches (e.g. 0.2 for 20%)."
    )
    other_factors: float = Field(
        ge=0, description="Contribution score from other factors (e.g. 0.1 for 10%)."
    )

    @property
    def total(self) -> float:
        return self.facial_inconsistency + self.temporal_anomalies + self.audio_mismatch + self.other_factors


class AdvancedPatternRecognition(_WireModel):
    creation_method: str = Field(
        description="The likely tool or method used for creation (e.g. FaceSwap, DeepFaceLab, GAN variant)."
    )
    sophistication: Sophistication = Field(description="The assessed sophistication level of the deepfake.")


class Heatmaps(_WireModel):
    """Artifact references (data URIs or URLs) for the four generated heatmaps."""

    attention: str = Field(min_length=1, description="Attention heatmap image reference.")
    anomaly: str = Field(min_length=1, description="Anomaly heatmap image reference.")
    temporal: str = Field(min_length=1, description="Temporal heatmap image reference.")
    feature_importance: str = Field(min_length=1, description="Feature importance heatmap image reference.")


class ConfidencePoint(_WireModel):
    frame: int = Field(ge=0)
    confidence: float = Field(ge=0, le=1)


class SuspiciousSegment(_WireModel):
    start: float = Field(ge=0, description="Start time in seconds")
    end: float = Field(ge=0, description="End time in seconds")
    reason: str = Field(description="Reason for suspicion")

    @model_validator(mode="after")
    def _check_order(self) -> "SuspiciousSegment":
        if self.start > self.end:
            raise ValueError(f"segment start ({self.start}) is after its end ({self.end})")
        return self


class TimelineAnalysis(_WireModel):
    confidence_graph: list[ConfidencePoint] = Field(
        min_length=TIMELINE_MIN_POINTS,
        max_length=TIMELINE_MAX_POINTS,
        description="Frame-by-frame confidence levels for a timeline graph, ordered by frame.",
    )
    suspicious_segments: list[SuspiciousSegment] = Field(
        min_length=MIN_SUSPICIOUS_SEGMENTS,
        max_length=MAX_SUSPICIOUS_SEGMENTS,
        description="Segments with high suspicion.",
    )

    @field_validator("confidence_graph")
    @classmethod
    def _frames_increase(cls, points: list[ConfidencePoint]) -> list[ConfidencePoint]:
        for prev, cur in zip(points, points[1:]):
            if cur.frame <= prev.frame:
                raise ValueError(f"frame {cur.frame} does not follow frame {prev.frame}")
        return points


class BiometricConsistency(_WireModel):
    blink_rate: float = Field(ge=0, description="Blinks per minute. Normal is 15-20.")
    micro_expression_score: float = Field(
        ge=0, le=1, description="Consistency of micro-expressions (0=unnatural, 1=natural)."
    )
    head_movement_naturalness: float = Field(
        ge=0, le=1, description="Naturalness of head movements (0=unnatural, 1=natural)."
    )


class MultiModalAnalysis(_WireModel):
    av_sync_score: float = Field(
        ge=0, le=1, description="Audio-visual synchronization score (0=desynced, 1=synced)."
    )
    biometric_consistency: BiometricConsistency
    frequency_analysis: str = Field(
        description="A summary of findings from audio and visual frequency domain analysis."
    )


class Explainability(_WireModel):
    decision_tree: str = Field(min_length=1, description="Decision tree visualization image reference.")
    uncertainty_quantification: str = Field(
        description="A summary of areas where the model has low confidence and why."
    )


class Forensics(_WireModel):
    # Model-generated; looks like a hash but is not derived from the payload.
    chain_of_custody: str = Field(
        description="A mock verification trail hash, e.g. '0x' followed by 64 hex characters."
    )


# ── Aggregate ─────────────────────────────────────────────────────────────────

class AnalysisResult(_WireModel):
    """Complete deepfake analysis for one video."""

    is_deepfake: bool = Field(description="Whether the video is likely a deepfake.")
    confidence_score: float = Field(
        ge=0, le=1, description="Confidence score of the deepfake analysis (0-1)."
    )
    analysis_report: str = Field(
        min_length=1,
        description="A detailed report outlining the analysis process and findings. Should be 3-4 paragraphs long.",
    )
    evidence_breakdown: EvidenceBreakdown = Field(
        description="A breakdown of factors contributing to the confidence score."
    )
    advanced_pattern_recognition: AdvancedPatternRecognition = Field(
        description="Advanced pattern recognition findings."
    )
    heatmaps: Heatmaps = Field(description="A set of heatmap visualizations.")
    timeline_analysis: TimelineAnalysis = Field(description="Timeline-based analysis results.")
    multi_modal_analysis: MultiModalAnalysis = Field(description="Results from multi-modal analysis.")
    explainability: Explainability = Field(description="Explainable AI (XAI) components.")
    forensics: Forensics = Field(description="Forensic and export related information.")


TextAnalysis = omit_fields(AnalysisResult, VISUAL_FIELDS, name="TextAnalysis")


def strip_visuals(data: dict, by_alias: bool = True) -> dict:
    """Drop the visual artifact fields from a decoded result dict."""
    return project(data, VISUAL_FIELDS, by_alias=by_alias)
