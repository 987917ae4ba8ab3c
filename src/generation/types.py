"""Data types for text generation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationRequest:
    system: str
    user: str
    label: str = "generate"
