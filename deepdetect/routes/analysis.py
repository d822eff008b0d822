"""
analysis.py — Deepfake video analysis endpoints.

Routes:
  POST /api/v1/analysis/video         — run the full analysis pipeline on one video
  POST /api/v1/analysis/report        — write a plain-language report from findings
  POST /api/v1/analysis/export/{fmt}  — download an AnalysisResult as json or xml

HOW THE DATA FLOWS
──────────────────
1. The front end reads the file with FileReader.readAsDataURL() and sends the
   resulting "data:video/mp4;base64,..." string as video_data_uri (or strips
   the prefix and sends video_b64 + filename).
2. The payload is decoded into an AnalysisRequest; malformed input or an
   unsupported type is a 422, anything over MAX_UPLOAD_MB a 413.
3. analysis_pipeline.analyze() runs text analysis, then the five image
   requests in parallel, then assembles the result.
4. Any pipeline failure arrives here as AnalysisFailed and becomes a 502 with
   a generic message; details stay in the server log.

No authentication required. The video endpoint is rate-limited per IP because
every call costs six Gemini requests.
"""

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Request, Response

from deepdetect.ai.analysis_pipeline import analysis_pipeline
from deepdetect.ai.report_generator import generate_report
from deepdetect.core.config import settings
from deepdetect.core.errors import AnalysisFailed, GenerationUnavailable, InvalidRequest
from deepdetect.core.rate_limit import limiter
from deepdetect.models.analysis import AnalysisResult
from deepdetect.models.api import AnalyzeVideoRequest, ReportRequest, ReportResponse
from deepdetect.models.media import AnalysisRequest
from deepdetect.services.exporters import export_result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/analysis", tags=["analysis"])


def _to_analysis_request(payload: AnalyzeVideoRequest) -> AnalysisRequest:
    if payload.video_data_uri is not None:
        return AnalysisRequest.from_data_uri(payload.video_data_uri)
    return AnalysisRequest.from_base64(payload.video_b64, payload.filename)


@router.post("/video", response_model=AnalysisResult, status_code=200)
@limiter.limit(settings.analysis_rate_limit)
async def analyze_video(request: Request, payload: AnalyzeVideoRequest):
    """
    Analyse a video for deepfake manipulation.

    Returns the full AnalysisResult (camelCase): verdict, confidence, report,
    evidence breakdown, timeline, multi-modal scores, heatmaps and decision tree.
    """
    try:
        media = _to_analysis_request(payload)
        media.validate()
    except InvalidRequest as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if media.size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Please upload a video smaller than {settings.max_upload_mb}MB.",
        )

    try:
        return await analysis_pipeline.analyze(media)
    except AnalysisFailed as exc:
        raise HTTPException(status_code=502, detail=exc.user_message) from exc


@router.post("/report", response_model=ReportResponse, status_code=200)
@limiter.limit("20/minute")
async def create_report(request: Request, payload: ReportRequest):
    """Turn summarised findings into a report for a non-technical audience."""
    try:
        report = await generate_report(payload)
    except GenerationUnavailable as exc:
        logger.error("Report generation failed: %s", exc)
        raise HTTPException(
            status_code=502,
            detail="Failed to generate the report. The model may be unavailable.",
        ) from exc
    return ReportResponse(report=report)


@router.post("/export/{fmt}", status_code=200)
async def export_analysis(fmt: Literal["json", "xml"], result: AnalysisResult) -> Response:
    """Return `result` as a downloadable file in the requested format."""
    body, media_type = export_result(result, fmt)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="deepfake-analysis.{fmt}"'},
    )
