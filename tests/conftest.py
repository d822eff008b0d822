"""
pytest configuration and shared fixtures for the DeepDetect API tests.

Key concern: tests must not require a Gemini API key or network access.
We achieve this by:
  1. Ensuring AI_MOCK_MODE=true so GeminiClient returns canned responses
     for the HTTP-level tests.
  2. Providing deterministic fake text / image backends for pipeline tests,
     with knobs to inject failures, empty output and delays.
  3. Resetting the rate limiter before every test so request counts from one
     test never push another over the limit.
"""

import asyncio
import copy
import json
import os

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("AI_MOCK_MODE", "true")
os.environ.setdefault("ENVIRONMENT", "test")


# ── Payload fixtures ──────────────────────────────────────────────────────────

_TEXT_ANALYSIS = {
    "isDeepfake": True,
    "confidenceScore": 0.87,
    "analysisReport": (
        "Blending halos appear along the jawline & the hairline.\n\n"
        "Eye flicker between 3.2s and 4.8s is not matched by the background."
    ),
    "evidenceBreakdown": {
        "facialInconsistency": 0.4,
        "temporalAnomalies": 0.3,
        "audioMismatch": 0.2,
        "otherFactors": 0.1,
    },
    "advancedPatternRecognition": {"creationMethod": "DeepFaceLab", "sophistication": "High"},
    "timelineAnalysis": {
        "confidenceGraph": [{"frame": i * 5, "confidence": round(0.5 + 0.01 * i, 2)} for i in range(24)],
        "suspiciousSegments": [
            {"start": 3.2, "end": 4.8, "reason": "Eye flicker"},
            {"start": 7.0, "end": 7.0, "reason": "Single-frame <glitch>"},
        ],
    },
    "multiModalAnalysis": {
        "avSyncScore": 0.42,
        "biometricConsistency": {
            "blinkRate": 6.5,
            "microExpressionScore": 0.35,
            "headMovementNaturalness": 0.58,
        },
        "frequencyAnalysis": "Suppressed high frequencies inside the face region.",
    },
    "explainability": {"uncertaintyQuantification": "Motion blur in the last two seconds."},
    "forensics": {"chainOfCustody": "0x" + "ab" * 32},
}


@pytest.fixture()
def text_payload() -> dict:
    """A valid camelCase text-only analysis, as the text model would return it."""
    return copy.deepcopy(_TEXT_ANALYSIS)


@pytest.fixture()
def full_payload(text_payload) -> dict:
    """A valid camelCase full AnalysisResult (text analysis + visual references)."""
    data = copy.deepcopy(text_payload)
    data["heatmaps"] = {
        "attention": "https://img.test/attention.png",
        "anomaly": "https://img.test/anomaly.png",
        "temporal": "https://img.test/temporal.png",
        "featureImportance": "https://img.test/feature.png",
    }
    data["explainability"]["decisionTree"] = "https://img.test/tree.png"
    return data


# ── Fake backends ─────────────────────────────────────────────────────────────

class FakeTextBackend:
    """Returns `response` (JSON text) or raises `error`; records every prompt."""

    def __init__(self, response: str) -> None:
        self.response = response
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls: list[dict] = []

    async def generate_structured(self, prompt, media_b64, mime_type, response_key="deepfake_analysis"):
        self.calls.append({"prompt": prompt, "media_b64": media_b64, "mime_type": mime_type})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class FakeImageBackend:
    """
    Returns a unique URL per call. A prompt containing `fail_on` raises,
    one containing `empty_on` returns None, one containing `slow_on` sleeps
    for `delay` seconds first.
    """

    def __init__(self) -> None:
        self.fail_on: str | None = None
        self.empty_on: str | None = None
        self.slow_on: str | None = None
        self.delay = 0.0
        self.prompts: list[str] = []
        self.completed = 0
        self.cancelled = 0

    async def generate_image(self, prompt, response_key="deepfake_visual"):
        self.prompts.append(prompt)
        index = len(self.prompts)
        try:
            if self.slow_on and self.slow_on in prompt:
                await asyncio.sleep(self.delay)
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.fail_on and self.fail_on in prompt:
            raise RuntimeError("image backend exploded")
        if self.empty_on and self.empty_on in prompt:
            return None
        self.completed += 1
        return f"https://img.test/{index}.png"


@pytest.fixture()
def fake_text(text_payload) -> FakeTextBackend:
    return FakeTextBackend(json.dumps(text_payload))


@pytest.fixture()
def fake_images() -> FakeImageBackend:
    return FakeImageBackend()


@pytest.fixture()
def pipeline(fake_text, fake_images):
    from deepdetect.ai.analysis_pipeline import AnalysisPipeline

    return AnalysisPipeline(text_backend=fake_text, image_backend=fake_images, timeout=1.0)


@pytest.fixture()
def video_request():
    from deepdetect.models.media import AnalysisRequest

    return AnalysisRequest(payload=b"\x00\x00\x00\x18ftypmp42fake-video-bytes", media_type="video/mp4")


# ── HTTP client ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear in-memory rate-limit counters so tests are independent."""
    from deepdetect.core.rate_limit import limiter

    limiter.reset()
    yield


@pytest.fixture()
async def client():
    """
    HTTPX async test client wired to the FastAPI app.

    Usage:
        async def test_something(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from deepdetect.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
