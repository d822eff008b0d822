"""
test_analysis.py — Tests for the deepfake analysis endpoints.

Routes under test:
  POST /api/v1/analysis/video
  POST /api/v1/analysis/report
  POST /api/v1/analysis/export/{fmt}

Runs in mock AI mode — no real API keys or video processing required.
The payloads are small dummy strings; the mock Gemini client returns a
canned analysis and a 1×1 PNG for every visual regardless of content.
"""

import base64
import xml.etree.ElementTree as ET
from unittest.mock import patch

import pytest

from deepdetect.ai.analysis_pipeline import AnalysisPipeline

_VIDEO_BYTES = b"fake-video-content-for-testing"
_DUMMY_B64 = base64.b64encode(_VIDEO_BYTES).decode()
_DATA_URI = f"data:video/mp4;base64,{_DUMMY_B64}"

_REPORT_BODY = {
    "analysisProcess": "Frame-by-frame facial and temporal review.",
    "detectedAbnormalities": "Jawline blending halos; eye flicker at 3-5s.",
    "potentialMethods": "DeepFaceLab, FaceSwap",
    "confidenceScore": 0.87,
}


# ── Video endpoint ─────────────────────────────────────────────────────────────

class TestAnalyzeVideo:
    async def test_data_uri_returns_200(self, client):
        r = await client.post("/api/v1/analysis/video", json={"video_data_uri": _DATA_URI})
        assert r.status_code == 200

    async def test_b64_with_filename_returns_200(self, client):
        r = await client.post(
            "/api/v1/analysis/video",
            json={"video_b64": _DUMMY_B64, "filename": "clip.webm"},
        )
        assert r.status_code == 200

    async def test_response_is_camel_case_full_result(self, client):
        r = await client.post("/api/v1/analysis/video", json={"video_data_uri": _DATA_URI})
        data = r.json()
        for key in (
            "isDeepfake", "confidenceScore", "analysisReport", "evidenceBreakdown",
            "advancedPatternRecognition", "heatmaps", "timelineAnalysis",
            "multiModalAnalysis", "explainability", "forensics",
        ):
            assert key in data, key
        assert set(data["heatmaps"]) == {"attention", "anomaly", "temporal", "featureImportance"}
        assert data["explainability"]["decisionTree"].startswith("data:image/png;base64,")

    async def test_values_within_bounds(self, client):
        data = (await client.post("/api/v1/analysis/video", json={"video_data_uri": _DATA_URI})).json()
        assert isinstance(data["isDeepfake"], bool)
        assert 0.0 <= data["confidenceScore"] <= 1.0
        assert 20 <= len(data["timelineAnalysis"]["confidenceGraph"]) <= 30
        assert 1 <= len(data["timelineAnalysis"]["suspiciousSegments"]) <= 3
        assert data["advancedPatternRecognition"]["sophistication"] in ("Low", "Medium", "High", "Very High")

    async def test_missing_payload_returns_422(self, client):
        r = await client.post("/api/v1/analysis/video", json={})
        assert r.status_code == 422

    async def test_both_payloads_returns_422(self, client):
        r = await client.post(
            "/api/v1/analysis/video",
            json={"video_data_uri": _DATA_URI, "video_b64": _DUMMY_B64},
        )
        assert r.status_code == 422

    async def test_malformed_data_uri_returns_422(self, client):
        r = await client.post("/api/v1/analysis/video", json={"video_data_uri": "data:video/mp4,abc"})
        assert r.status_code == 422

    async def test_unsupported_media_type_returns_422(self, client):
        r = await client.post(
            "/api/v1/analysis/video",
            json={"video_data_uri": f"data:image/png;base64,{_DUMMY_B64}"},
        )
        assert r.status_code == 422

    async def test_empty_video_returns_422(self, client):
        r = await client.post("/api/v1/analysis/video", json={"video_data_uri": "data:video/mp4;base64,"})
        assert r.status_code == 422

    async def test_oversize_video_returns_413(self, client):
        from deepdetect.core.config import settings

        with patch.object(settings, "max_upload_mb", 0):
            r = await client.post("/api/v1/analysis/video", json={"video_data_uri": _DATA_URI})
        assert r.status_code == 413
        assert "smaller than" in r.json()["detail"]

    async def test_pipeline_failure_returns_502_with_generic_message(self, client):
        class _DownBackend:
            async def generate_structured(self, *args, **kwargs):
                raise ConnectionError("HTTP 503 internal detail")

        failing = AnalysisPipeline(text_backend=_DownBackend(), timeout=1.0)
        with patch("deepdetect.routes.analysis.analysis_pipeline", failing):
            r = await client.post("/api/v1/analysis/video", json={"video_data_uri": _DATA_URI})

        assert r.status_code == 502
        assert "Failed to analyze the video" in r.json()["detail"]
        assert "503" not in r.text

    async def test_get_method_not_allowed(self, client):
        r = await client.get("/api/v1/analysis/video")
        assert r.status_code == 405


# ── Report endpoint ────────────────────────────────────────────────────────────

class TestReport:
    async def test_returns_report(self, client):
        r = await client.post("/api/v1/analysis/report", json=_REPORT_BODY)
        assert r.status_code == 200
        assert len(r.json()["report"]) > 0

    async def test_confidence_out_of_range_returns_422(self, client):
        r = await client.post("/api/v1/analysis/report", json={**_REPORT_BODY, "confidenceScore": 2})
        assert r.status_code == 422

    async def test_missing_field_returns_422(self, client):
        body = {k: v for k, v in _REPORT_BODY.items() if k != "potentialMethods"}
        r = await client.post("/api/v1/analysis/report", json=body)
        assert r.status_code == 422

    async def test_backend_failure_returns_502(self, client):
        from deepdetect.ai.gemini_client import gemini_client

        with patch.object(gemini_client, "generate", side_effect=RuntimeError("boom")):
            r = await client.post("/api/v1/analysis/report", json=_REPORT_BODY)
        assert r.status_code == 502


# ── Export endpoint ────────────────────────────────────────────────────────────

class TestExport:
    async def test_xml_export(self, client, full_payload):
        r = await client.post("/api/v1/analysis/export/xml", json=full_payload)
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("application/xml")
        assert 'filename="deepfake-analysis.xml"' in r.headers["content-disposition"]
        assert ET.fromstring(r.text).findtext("confidenceScore") == "0.87"

    async def test_json_export(self, client, full_payload):
        r = await client.post("/api/v1/analysis/export/json", json=full_payload)
        assert r.status_code == 200
        assert r.json()["confidenceScore"] == 0.87

    async def test_unknown_format_returns_422(self, client, full_payload):
        r = await client.post("/api/v1/analysis/export/pdf", json=full_payload)
        assert r.status_code == 422

    async def test_partial_result_rejected(self, client, text_payload):
        r = await client.post("/api/v1/analysis/export/xml", json=text_payload)
        assert r.status_code == 422

    @pytest.mark.parametrize("fmt", ["json", "xml"])
    async def test_analysis_output_is_exportable(self, client, fmt):
        analysed = await client.post("/api/v1/analysis/video", json={"video_data_uri": _DATA_URI})
        r = await client.post(f"/api/v1/analysis/export/{fmt}", json=analysed.json())
        assert r.status_code == 200
