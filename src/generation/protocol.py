"""Protocol definition for text generators."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from src.generation.types import GenerationRequest


@runtime_checkable
class TextGenerator(Protocol):
    name: str

    async def generate(self, request: GenerationRequest) -> str: ...
