"""Generation collaborator interface."""

from __future__ import annotations

from typing import Protocol

from sitesmith.models.generation import GenerationResult


class Collaborator(Protocol):
    async def generate(self, prompt: str) -> GenerationResult:
        ...
