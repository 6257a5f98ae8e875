"""Data models for the hierarchical project tree."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class FileNode:
    name: str
    path: str
    kind: NodeKind
    content: Optional[str] = None
    children: Optional[list[FileNode]] = None

    @classmethod
    def file(cls, name: str, path: str, content: str) -> FileNode:
        return cls(name=name, path=path, kind=NodeKind.FILE, content=content)

    @classmethod
    def directory(cls, name: str, path: str) -> FileNode:
        return cls(name=name, path=path, kind=NodeKind.DIRECTORY, children=[])

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "kind": self.kind.value,
        }
        if self.is_dir:
            data["children"] = [child.to_dict() for child in self.children or []]
        else:
            data["content"] = self.content
        return data


# {"name": {"file": {"contents": "..."}}} or {"name": {"directory": {...}}}
MountEntry = dict[str, Any]
