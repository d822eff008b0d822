"""
exporters.py — Download projections of an AnalysisResult.

Formats:
  json → the camelCase wire object, pretty-printed
  xml  → generic object → XML projection:
           dict  → element per key (names sanitised to a safe charset)
           list  → repeated <item> children
           bool  → true / false
           None  → empty element
           other → escaped text (& < > " ' are always escaped, CR and TAB are
                   written as character references so parsers keep them,
                   and control characters XML 1.0 forbids are dropped)

Both are pure functions of the result; nothing is cached or stored.
PDF export is the browser's print dialog and has no server counterpart.
"""

import re
from collections.abc import Callable
from typing import Any

from deepdetect.models.analysis import AnalysisResult

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
    "\r": "&#13;",
    "\t": "&#9;",
}

# Characters XML 1.0 cannot carry at all, even as references.
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")
_NAME_START = re.compile(r"[A-Za-z_]")


def escape_xml(text: str) -> str:
    text = _ILLEGAL_XML_CHARS.sub("", text)
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in text)


def sanitize_element_name(name: str) -> str:
    """
    Map an arbitrary key to a valid XML element name.

    Characters outside [A-Za-z0-9_.-] become "_"; names that do not start with
    a letter or underscore, or that start with the reserved "xml" prefix, get a
    leading "_".
    """
    safe = _UNSAFE_NAME_CHARS.sub("_", name)
    if not safe or not _NAME_START.match(safe) or safe.lower().startswith("xml"):
        safe = "_" + safe
    return safe


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _write_element(name: str, value: Any, lines: list[str], depth: int) -> None:
    tag = sanitize_element_name(name)
    indent = "  " * depth

    if isinstance(value, (dict, list)):
        children = value.items() if isinstance(value, dict) else (("item", v) for v in value)
        lines.append(f"{indent}<{tag}>")
        for key, child in children:
            _write_element(str(key), child, lines, depth + 1)
        lines.append(f"{indent}</{tag}>")
        return

    lines.append(f"{indent}<{tag}>{escape_xml(_scalar_text(value))}</{tag}>")


def object_to_xml(data: Any, root: str) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>']
    _write_element(root, data, lines, depth=0)
    return "\n".join(lines) + "\n"


def to_xml(result: AnalysisResult) -> str:
    return object_to_xml(result.model_dump(mode="json", by_alias=True), root="analysisResult")


def to_json(result: AnalysisResult) -> str:
    return result.model_dump_json(by_alias=True, indent=2)


# fmt → (renderer, media type)
EXPORT_FORMATS: dict[str, tuple[Callable[[AnalysisResult], str], str]] = {
    "json": (to_json, "application/json"),
    "xml": (to_xml, "application/xml"),
}


def export_result(result: AnalysisResult, fmt: str) -> tuple[str, str]:
    """
    Render `result` in the requested format.

    Returns:
        (body, media_type)

    Raises:
        KeyError: unknown format.
    """
    renderer, media_type = EXPORT_FORMATS[fmt]
    return renderer(result), media_type
