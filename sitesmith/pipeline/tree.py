"""Build a hierarchical file tree from a flat path map and back."""

from __future__ import annotations

from typing import Iterable, Mapping, Union

from sitesmith.errors import TreeConflictError
from sitesmith.models.tree import FileNode, MountEntry, NodeKind

FileMap = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def split_path(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment and segment != "."]


def build_file_tree(files: FileMap) -> list[FileNode]:
    """Turn ``{"src/App.tsx": "..."}`` style entries into nested nodes.

    Entries are visited in iteration order. Directories are created once per
    prefix and reused; children keep first-insertion order. A path seen twice
    keeps its first position and takes the later content.
    """
    entries = files.items() if isinstance(files, Mapping) else files
    roots: list[FileNode] = []
    nodes: dict[str, FileNode] = {}

    for raw_path, content in entries:
        segments = split_path(raw_path)
        if not segments:
            raise TreeConflictError(f"Invalid file path: {raw_path!r}")
        siblings = roots
        for depth, segment in enumerate(segments):
            path = "/".join(segments[: depth + 1])
            existing = nodes.get(path)
            is_last = depth == len(segments) - 1
            if is_last:
                if existing is None:
                    node = FileNode.file(segment, path, content)
                    nodes[path] = node
                    siblings.append(node)
                elif existing.kind is NodeKind.FILE:
                    existing.content = content
                else:
                    raise TreeConflictError(f"Path is already a directory: {path}")
            else:
                if existing is None:
                    existing = FileNode.directory(segment, path)
                    nodes[path] = existing
                    siblings.append(existing)
                elif existing.kind is NodeKind.FILE:
                    raise TreeConflictError(f"Path is already a file: {path}")
                siblings = existing.children
    return roots


def to_mount_structure(nodes: Iterable[FileNode]) -> MountEntry:
    structure: MountEntry = {}
    for node in nodes:
        if node.is_dir:
            structure[node.name] = {
                "directory": to_mount_structure(node.children or [])
            }
        else:
            structure[node.name] = {"file": {"contents": node.content or ""}}
    return structure


def flatten_tree(nodes: Iterable[FileNode]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for node in nodes:
        if node.is_dir:
            pairs.extend(flatten_tree(node.children or []))
        else:
            pairs.append((node.path, node.content or ""))
    return pairs
