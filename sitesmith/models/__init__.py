"""Shared data models for the sitesmith application."""

from sitesmith.models.artifact import Step, StepType
from sitesmith.models.generation import Classification, GenerationResult, PipelineResult
from sitesmith.models.sandbox import FailureKind, SandboxPhase, SandboxState
from sitesmith.models.tree import FileNode, MountEntry, NodeKind

__all__ = [
    "Classification",
    "FailureKind",
    "FileNode",
    "GenerationResult",
    "MountEntry",
    "NodeKind",
    "PipelineResult",
    "SandboxPhase",
    "SandboxState",
    "Step",
    "StepType",
]
