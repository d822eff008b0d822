"""
backends.py — Narrow capability interfaces for the generation backends.

The pipeline only depends on these two methods, so tests can swap in
deterministic fakes. GeminiClient satisfies both.
"""

from typing import Protocol


class TextBackend(Protocol):
    async def generate_structured(
        self, prompt: str, media_b64: str, mime_type: str, response_key: str = ...
    ) -> str:
        """Prompt + inline media in, raw JSON text out."""
        ...


class ImageBackend(Protocol):
    async def generate_image(self, prompt: str, response_key: str = ...) -> str | None:
        """Prompt in, image artifact reference (data URI or URL) out; None if no image was produced."""
        ...
