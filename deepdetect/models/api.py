"""
api.py — Pydantic request/response models for the HTTP layer.

The video endpoint accepts either shape the front end can produce:
  - video_data_uri: the full "data:video/mp4;base64,..." string from
    FileReader.readAsDataURL()
  - video_b64 + filename: raw base64 with the MIME type derived from the name

The response is AnalysisResult itself (models/analysis.py), serialised with
camelCase aliases.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ── Video analysis ────────────────────────────────────────────────────────────

class AnalyzeVideoRequest(BaseModel):
    """Video submitted for deepfake analysis."""

    video_data_uri: str | None = Field(default=None, min_length=1, description="data:<mimetype>;base64,<data>")
    video_b64: str | None = Field(default=None, min_length=1, description="Base64-encoded video data")
    filename: str = Field(default="video.mp4", description="Original filename (used for MIME hint)")

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> "AnalyzeVideoRequest":
        if (self.video_data_uri is None) == (self.video_b64 is None):
            raise ValueError("provide exactly one of video_data_uri or video_b64")
        return self


# ── Narrative report (secondary flow) ─────────────────────────────────────────

class ReportRequest(BaseModel):
    """Inputs for a stand-alone, non-technical analysis report."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    analysis_process: str = Field(..., min_length=1, description="A description of the analysis process used.")
    detected_abnormalities: str = Field(..., min_length=1, description="Abnormalities detected in the video.")
    potential_methods: str = Field(..., min_length=1, description="Potential deepfake methods that could have been used.")
    confidence_score: float = Field(..., ge=0, le=1, description="Likelihood (0-1) that the video is a deepfake.")


class ReportResponse(BaseModel):
    report: str
