"""
schema.py — Helpers that derive views and descriptions from one pydantic model tree.

The analysis result is defined exactly once (models/analysis.py). Everything
else is derived from that definition:

  omit_fields()     → a new model class with dotted field paths removed
                      (e.g. the text-only view handed to the text model)
  project()         → the same field-set subtraction applied to decoded data
  describe_schema() → a readable outline of a model, embedded in prompts so
                      the generation backend knows which fields to populate

Paths always use Python attribute names ("explainability.decision_tree").
project() can translate them to the camelCase wire aliases when the data came
straight from a model response.
"""

from collections.abc import Iterable
from copy import deepcopy
import json
from typing import Any

from pydantic import BaseModel, create_model
from pydantic.alias_generators import to_camel

# A path tree maps a field name to either None (drop the field) or a nested tree.
PathTree = dict[str, Any]


def _path_tree(paths: Iterable[str]) -> PathTree:
    tree: PathTree = {}
    for path in paths:
        *parents, leaf = path.split(".")
        node = tree
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = None
    return tree


# ── Model projection ──────────────────────────────────────────────────────────

def omit_fields(model: type[BaseModel], paths: Iterable[str], name: str | None = None) -> type[BaseModel]:
    """
    Build a copy of `model` without the given dotted field paths.

    Nested models on a path are rebuilt recursively; models off the path are
    reused as-is, so their validators and constraints stay shared with the
    source model. Validators declared on a model that gets rebuilt are not
    carried over, so keep cross-field checks on leaf models.

    Raises:
        KeyError:  a path names a field the model does not have.
        TypeError: a path descends into a field that is not a nested model.
    """
    return _omit(model, _path_tree(paths), name or f"{model.__name__}Projection")


def _omit(model: type[BaseModel], tree: PathTree, name: str) -> type[BaseModel]:
    unknown = set(tree) - set(model.model_fields)
    if unknown:
        raise KeyError(f"{model.__name__} has no field(s): {', '.join(sorted(unknown))}")

    fields: dict[str, Any] = {}
    for field_name, info in model.model_fields.items():
        if field_name in tree and tree[field_name] is None:
            continue

        annotation = info.annotation
        subtree = tree.get(field_name)
        if subtree:
            if not (isinstance(annotation, type) and issubclass(annotation, BaseModel)):
                raise TypeError(f"{model.__name__}.{field_name} is not a nested model")
            annotation = _omit(annotation, subtree, f"{name}{annotation.__name__}")

        # create_model may mutate the FieldInfo it is given.
        fields[field_name] = (annotation, deepcopy(info))

    return create_model(
        name,
        __config__=model.model_config,
        __doc__=model.__doc__,
        __module__=model.__module__,
        **fields,
    )


def project(data: dict[str, Any], paths: Iterable[str], by_alias: bool = False) -> dict[str, Any]:
    """
    Return a copy of `data` with the dotted paths removed.

    Missing keys are ignored, so projecting an already-projected dict is a no-op.
    With by_alias=True each path segment is converted to camelCase first.
    """
    result = deepcopy(data)
    for path in paths:
        parts = [to_camel(p) if by_alias else p for p in path.split(".")]
        node: Any = result
        for part in parts[:-1]:
            node = node.get(part) if isinstance(node, dict) else None
        if isinstance(node, dict):
            node.pop(parts[-1], None)
    return result


# ── Human-readable description ────────────────────────────────────────────────

def describe_schema(model: type[BaseModel]) -> str:
    """
    Render `model` as an indented bullet outline using its wire (alias) names.

    Example line:
        - confidenceScore (number, 0 to 1): Confidence score of the analysis.
    """
    schema = model.model_json_schema(by_alias=True)
    defs = schema.get("$defs", {})
    lines: list[str] = []
    _describe_properties(schema, defs, lines, depth=0)
    return "\n".join(lines)


def _resolve(node: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    """Inline a $ref (or single-element allOf) while keeping sibling keys like description."""
    if "$ref" in node:
        target = defs[node["$ref"].rsplit("/", 1)[-1]]
        siblings = {k: v for k, v in node.items() if k != "$ref"}
        return {**_resolve(target, defs), **siblings}
    if len(node.get("allOf", [])) == 1:
        siblings = {k: v for k, v in node.items() if k != "allOf"}
        return {**_resolve(node["allOf"][0], defs), **siblings}
    return node


def _fmt(n: float) -> str:
    return f"{n:g}"


def _type_label(node: dict[str, Any]) -> str:
    if "enum" in node:
        return "one of: " + ", ".join(json.dumps(v) for v in node["enum"])

    kind = node.get("type", "any")
    if kind == "array":
        lo, hi = node.get("minItems"), node.get("maxItems")
        if lo is not None and hi is not None:
            return f"array of {lo} to {hi} items"
        if lo is not None:
            return f"array of at least {lo} items"
        if hi is not None:
            return f"array of at most {hi} items"
        return "array"

    lo, hi = node.get("minimum"), node.get("maximum")
    if lo is not None and hi is not None:
        return f"{kind}, {_fmt(lo)} to {_fmt(hi)}"
    if lo is not None:
        return f"{kind}, >= {_fmt(lo)}"
    if hi is not None:
        return f"{kind}, <= {_fmt(hi)}"
    return kind


def _describe_properties(schema: dict[str, Any], defs: dict[str, Any], lines: list[str], depth: int) -> None:
    indent = "  " * depth
    for prop_name, raw in schema.get("properties", {}).items():
        node = _resolve(raw, defs)
        line = f"{indent}- {prop_name} ({_type_label(node)})"
        if node.get("description"):
            line += f": {node['description']}"
        lines.append(line)

        if node.get("type") == "object":
            _describe_properties(node, defs, lines, depth + 1)
        elif node.get("type") == "array":
            items = _resolve(node.get("items", {}), defs)
            if items.get("type") == "object":
                _describe_properties(items, defs, lines, depth + 1)
