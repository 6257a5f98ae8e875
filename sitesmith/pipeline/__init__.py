"""Parsing, tree assembly and coordination of generated projects."""

from sitesmith.pipeline.coordinator import PipelineCoordinator
from sitesmith.pipeline.parser import files_from_steps, parse_artifact, strip_fences
from sitesmith.pipeline.scaffold import DEFAULT_SCAFFOLD, apply_scaffold
from sitesmith.pipeline.tree import build_file_tree, flatten_tree, to_mount_structure

__all__ = [
    "DEFAULT_SCAFFOLD",
    "PipelineCoordinator",
    "apply_scaffold",
    "build_file_tree",
    "files_from_steps",
    "flatten_tree",
    "parse_artifact",
    "strip_fences",
    "to_mount_structure",
]
