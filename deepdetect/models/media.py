"""
media.py — The video payload handed to the analysis pipeline.

AnalysisRequest is an internal dataclass (converted from the HTTP request
model by the route). It can be built three ways:

  AnalysisRequest(payload, media_type)        raw bytes from any caller
  AnalysisRequest.from_base64(b64, filename)  JSON body; MIME from extension
  AnalysisRequest.from_data_uri(uri)          "data:video/mp4;base64,AAAA..."
                                              as produced by FileReader.readAsDataURL()

Construction never raises for an empty payload or unknown type; validate()
does, so the pipeline can reject the request before any network call and
report it through the same failure path as every other error.
"""

import base64
import binascii
import re
from dataclasses import dataclass

from deepdetect.core.errors import InvalidRequest

_MIME_MAP = {
    ".mp4":  "video/mp4",
    ".m4v":  "video/mp4",
    ".webm": "video/webm",
    ".mov":  "video/quicktime",
    ".avi":  "video/x-msvideo",
    ".mkv":  "video/x-matroska",
    ".mpeg": "video/mpeg",
    ".mpg":  "video/mpeg",
    ".ogv":  "video/ogg",
    ".3gp":  "video/3gpp",
}

SUPPORTED_VIDEO_TYPES = frozenset(_MIME_MAP.values())

# Parameter values may be quoted, e.g. codecs="avc1.42E01E, mp4a.40.2".
_DATA_URI_RE = re.compile(
    r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=(?:"[^"]*"|[^;,]+))*;base64,(?P<data>.*)$',
    re.DOTALL,
)


def mime_from_filename(filename: str) -> str:
    """Derive a MIME type from a filename extension."""
    ext = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return _MIME_MAP.get(ext, "application/octet-stream")


def _b64decode(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequest(f"payload is not valid base64: {exc}") from exc


@dataclass(frozen=True)
class AnalysisRequest:
    payload: bytes
    media_type: str

    @classmethod
    def from_base64(cls, data: str, filename: str = "video.mp4") -> "AnalysisRequest":
        return cls(payload=_b64decode(data.strip()), media_type=mime_from_filename(filename))

    @classmethod
    def from_data_uri(cls, uri: str) -> "AnalysisRequest":
        m = _DATA_URI_RE.match(uri.strip())
        if not m:
            raise InvalidRequest("expected a data URI of the form data:<mimetype>;base64,<data>")
        return cls(payload=_b64decode(m.group("data")), media_type=m.group("mime").lower())

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def b64(self) -> str:
        return base64.b64encode(self.payload).decode()

    def validate(self) -> None:
        if not self.payload:
            raise InvalidRequest("video payload is empty")
        if self.media_type not in SUPPORTED_VIDEO_TYPES:
            raise InvalidRequest(f"unsupported media type: {self.media_type!r}")
