"""Data models for generation requests and pipeline output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from sitesmith.models.artifact import Step
from sitesmith.models.tree import FileNode


class Classification(str, Enum):
    REACT = "react"
    NODE = "node"
    ERROR = "error"


@dataclass(frozen=True)
class GenerationResult:
    classification: Classification
    raw_text: str
    files: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PipelineResult:
    request_id: int
    classification: Classification
    steps: tuple[Step, ...]
    tree: list[FileNode]
    files: dict[str, str]
    error: Optional[str] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "classification": self.classification.value,
            "error": self.error,
            "stale": self.stale,
            "steps": [
                {
                    "type": step.type.value,
                    "action_type": step.action_type,
                    "path": step.path,
                    "content": step.content,
                }
                for step in self.steps
            ],
            "tree": [node.to_dict() for node in self.tree],
        }
