"""Data models for the fetch stage."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FetchMethod(str, Enum):
    """How the page text was obtained."""

    SIMPLE = "simple"
    RENDERED = "rendered"


@dataclass
class FetchResult:
    """Visible page text (lowercased, scripts and styles stripped)."""

    text: str
    method: FetchMethod
