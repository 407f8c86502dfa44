"""Helpers for pulling JSON out of free-text model output."""
from __future__ import annotations

import json
from typing import Any, Type, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def strip_code_fences(content: str) -> str:  # Remove common markdown fences from model output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text


def extract_json_object(content: str) -> str:
    """Return the outermost ``{...}`` block, tolerating fences and prose around it."""

    text = strip_code_fences(content)
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object found in model output")
    return text[start : end + 1]


def load_json_object(content: str) -> Any:
    return json.loads(extract_json_object(content))


def validate_json(schema: Type[T], content: str) -> T:
    """Parse then validate; raises ``ValueError`` (incl. ``ValidationError``) on failure."""

    return schema.model_validate_json(extract_json_object(content))


__all__ = ["extract_json_object", "load_json_object", "strip_code_fences", "validate_json"]
