"""
prompts.py — Prompt templates for the analysis pipeline.

  build_analysis_prompt(request) → the single text-model prompt: task framing,
                                   an attached-media placeholder, a per-field
                                   checklist and the text-only schema outline
  build_visual_prompts(text)     → five image prompts, each quoting specific
                                   fields of the validated text analysis

All functions are pure: no I/O, same input → same string.
"""

import math

from deepdetect.models.analysis import (
    MAX_SUSPICIOUS_SEGMENTS,
    MIN_SUSPICIOUS_SEGMENTS,
    TIMELINE_MAX_POINTS,
    TIMELINE_MIN_POINTS,
    Sophistication,
    TextAnalysis,
)
from deepdetect.models.media import AnalysisRequest
from deepdetect.models.schema import describe_schema

# Names of the five visuals, in the order they are requested and logged.
VISUAL_NAMES = ("attention", "anomaly", "temporal", "feature_importance", "decision_tree")


# ── Text analysis ─────────────────────────────────────────────────────────────

_ANALYSIS_PROMPT = """\
You are an expert in deepfake detection. Analyze the provided video and determine if it is a deepfake. \
Your analysis must be comprehensive and populate every field in the schema below.

Video: [attached media #1: {media_type}, {size_kb:.1f} KB]

Instructions:
1.  **Overall Verdict**: Set 'isDeepfake' to true or false and provide a 'confidenceScore' between 0.0 and 1.0.
2.  **Analysis Report**: Write a detailed 3-4 paragraph 'analysisReport' summarizing your process and findings.
3.  **Evidence Breakdown**: Assign non-negative values to 'facialInconsistency', 'temporalAnomalies', \
'audioMismatch' and 'otherFactors'. They are relative contributions and should add up to roughly 1.0.
4.  **Advanced Recognition**: Identify the likely 'creationMethod' and set 'sophistication' to one of: {sophistication}.
5.  **Timeline Analysis**:
    -   For 'confidenceGraph', generate {min_points}-{max_points} objects, each with an integer 'frame' and a \
'confidence' between 0.0 and 1.0, ordered by strictly increasing frame and spanning the video's duration.
    -   For 'suspiciousSegments', identify {min_segments} to {max_segments} segments with 'start' and 'end' times \
in seconds (start <= end, within the video) and a brief 'reason'.
6.  **Multi-Modal Analysis**: Set 'avSyncScore' between 0.0 and 1.0; for 'biometricConsistency' give 'blinkRate' \
in blinks per minute and 'microExpressionScore' and 'headMovementNaturalness' between 0.0 and 1.0; summarize \
'frequencyAnalysis' in a few sentences.
7.  **Explainability**: Summarize in 'uncertaintyQuantification' where your confidence is low and why.
8.  **Forensics**: Generate a mock 'chainOfCustody' hash ('0x' followed by 64 hex characters).

Do not produce heatmaps or a decision tree image; those are generated separately from your answer.

Schema:
{schema}

Return the ENTIRE output as a single, valid JSON object that strictly follows the schema above, \
with no surrounding text or markdown."""


def build_analysis_prompt(request: AnalysisRequest) -> str:
    """Render the text-analysis prompt for one video."""
    return _ANALYSIS_PROMPT.format(
        media_type=request.media_type,
        size_kb=request.size / 1024,
        sophistication=", ".join(f"'{s.value}'" for s in Sophistication),
        min_points=TIMELINE_MIN_POINTS,
        max_points=TIMELINE_MAX_POINTS,
        min_segments=MIN_SUSPICIOUS_SEGMENTS,
        max_segments=MAX_SUSPICIOUS_SEGMENTS,
        schema=describe_schema(TextAnalysis),
    )


# ── Visualisations ────────────────────────────────────────────────────────────

_ATTENTION_PROMPT = """\
Create a scientific attention heatmap for a video deepfake detector. Show a neutral, anonymous face \
silhouette with a jet colour map overlay (blue = low attention, red = high attention). The detector's \
verdict was {verdict} with {confidence} confidence; the suspected creation method is "{creation_method}". \
Concentrate the hottest regions where that method typically leaves traces. No text in the image."""

_ANOMALY_PROMPT = """\
Create an anomaly heatmap over a neutral, anonymous face silhouette for a deepfake forensic report. \
Facial inconsistency contributed {facial:.2f} to the verdict; scale the intensity of the red anomaly \
regions to match. Place anomalies consistent with this analysis:

{report}

Use a dark background and a magma colour map. No text in the image."""

_TEMPORAL_PROMPT = """\
Create a temporal heatmap strip for a deepfake forensic report: a horizontal timeline of video frames \
with colour intensity showing per-frame manipulation likelihood. Temporal anomalies contributed \
{temporal:.2f} to the verdict. Highlight these suspicious segments:
{segments}
Use a viridis colour map. No text in the image."""

_FEATURE_IMPORTANCE_PROMPT = """\
Create a feature-importance heatmap for a deepfake detector as a 4-cell grid, one cell per evidence \
family, with cell colour intensity proportional to its contribution:
  - facial inconsistency: {facial:.2f}
  - temporal anomalies: {temporal:.2f}
  - audio mismatch: {audio:.2f}
  - other factors: {other:.2f}
Use a clean scientific style and a coolwarm colour map. No text in the image."""

_DECISION_TREE_PROMPT = """\
Draw a clean decision-tree diagram explaining a deepfake detector's verdict, flowing top to bottom. \
The root splits on facial consistency, the next level on temporal stability, then on audio-visual \
sync (measured score: {av_sync}). The highlighted path must end in a leaf labelled "{verdict}" \
with confidence {confidence}. Flat vector style on a white background."""


def _verdict(text: TextAnalysis) -> str:
    return "DEEPFAKE" if text.is_deepfake else "AUTHENTIC"


def _fmt_segments(text: TextAnalysis) -> str:
    return "\n".join(
        f"  - {seg.start:g}s to {seg.end:g}s: {seg.reason}"
        for seg in text.timeline_analysis.suspicious_segments
    )


def confidence_percent(score: float) -> str:
    """Whole-number percentage, rounding halves up (0.125 → "13%")."""
    return f"{math.floor(score * 100 + 0.5)}%"


def build_visual_prompts(text: TextAnalysis) -> dict[str, str]:
    """Build the five image prompts, keyed by visual name (see VISUAL_NAMES)."""
    evidence = text.evidence_breakdown
    confidence = confidence_percent(text.confidence_score)
    return {
        "attention": _ATTENTION_PROMPT.format(
            verdict=_verdict(text),
            confidence=confidence,
            creation_method=text.advanced_pattern_recognition.creation_method,
        ),
        "anomaly": _ANOMALY_PROMPT.format(
            facial=evidence.facial_inconsistency,
            report=text.analysis_report,
        ),
        "temporal": _TEMPORAL_PROMPT.format(
            temporal=evidence.temporal_anomalies,
            segments=_fmt_segments(text),
        ),
        "feature_importance": _FEATURE_IMPORTANCE_PROMPT.format(
            facial=evidence.facial_inconsistency,
            temporal=evidence.temporal_anomalies,
            audio=evidence.audio_mismatch,
            other=evidence.other_factors,
        ),
        "decision_tree": _DECISION_TREE_PROMPT.format(
            verdict=_verdict(text),
            confidence=confidence,
            av_sync=text.multi_modal_analysis.av_sync_score,
        ),
    }
