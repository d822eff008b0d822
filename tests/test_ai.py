"""
Unit tests for the AI module (GeminiClient, report generator).

All tests run in mock mode — no real API keys needed.
These test the client contract and the canned responses, not Gemini's output.
"""

import json

import pytest

from deepdetect.ai.gemini_client import GeminiClient
from deepdetect.ai.report_generator import build_report_prompt, generate_report
from deepdetect.core.errors import GenerationUnavailable
from deepdetect.models.analysis import TextAnalysis
from deepdetect.models.api import ReportRequest

# ─── GeminiClient ─────────────────────────────────────────────────────────────


class TestGeminiClientMockMode:
    """GeminiClient in mock mode (default in tests)."""

    def setup_method(self):
        # Force mock mode regardless of env
        import deepdetect.core.config as cfg

        self._original = cfg.settings.ai_mock_mode
        cfg.settings.ai_mock_mode = True
        self.client = GeminiClient()

    def teardown_method(self):
        import deepdetect.core.config as cfg

        cfg.settings.ai_mock_mode = self._original

    @pytest.mark.asyncio
    async def test_generate_returns_string(self):
        result = await self.client.generate("test prompt")
        assert isinstance(result, str)
        assert len(result) > 0

    @pytest.mark.asyncio
    async def test_generate_unknown_key_returns_default(self):
        result = await self.client.generate("any prompt", response_key="nonexistent_key")
        assert "MOCK" in result

    @pytest.mark.asyncio
    async def test_structured_mock_is_valid_text_analysis(self):
        raw = await self.client.generate_structured("analyse", "AAAA", "video/mp4")
        text = TextAnalysis.model_validate(json.loads(raw))
        assert 0.0 <= text.confidence_score <= 1.0

    @pytest.mark.asyncio
    async def test_image_mock_is_png_data_uri(self):
        ref = await self.client.generate_image("draw a heatmap")
        assert ref.startswith("data:image/png;base64,")


class TestGeminiClientFallback:
    """Real mode requested without a key must degrade to mock mode."""

    def setup_method(self):
        import deepdetect.core.config as cfg

        self._mode = cfg.settings.ai_mock_mode
        self._key = cfg.settings.gemini_api_key
        cfg.settings.ai_mock_mode = False
        cfg.settings.gemini_api_key = ""

    def teardown_method(self):
        import deepdetect.core.config as cfg

        cfg.settings.ai_mock_mode = self._mode
        cfg.settings.gemini_api_key = self._key

    def test_falls_back_to_mock(self):
        assert GeminiClient().mock_mode is True


# ─── Report generator ─────────────────────────────────────────────────────────


def _report_request() -> ReportRequest:
    return ReportRequest(
        analysis_process="Frame review",
        detected_abnormalities="Jawline halos",
        potential_methods="FaceSwap",
        confidence_score=0.7,
    )


class TestReportGenerator:
    def test_prompt_embeds_inputs(self):
        prompt = build_report_prompt(_report_request())
        assert "Analysis Process: Frame review" in prompt
        assert "Detected Abnormalities: Jawline halos" in prompt
        assert "Potential Deepfake Methods: FaceSwap" in prompt
        assert "Confidence Score: 0.7" in prompt
        assert "non-technical audience" in prompt

    async def test_generates_report_in_mock_mode(self):
        report = await generate_report(_report_request())
        assert report.startswith("[MOCK]")

    async def test_empty_output_raises(self):
        class _EmptyClient:
            async def generate(self, prompt, response_key="default"):
                return "  "

        with pytest.raises(GenerationUnavailable):
            await generate_report(_report_request(), client=_EmptyClient())

    async def test_backend_error_raises(self):
        class _BrokenClient:
            async def generate(self, prompt, response_key="default"):
                raise ConnectionError("down")

        with pytest.raises(GenerationUnavailable):
            await generate_report(_report_request(), client=_BrokenClient())
