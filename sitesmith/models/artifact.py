"""Data models for parsed artifact actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

FILE_ACTION_TYPE = "file"


class StepType(str, Enum):
    FILE_WRITE = "file_write"
    OTHER = "other"


@dataclass(frozen=True)
class Step:
    type: StepType
    action_type: str
    path: Optional[str] = None
    content: Optional[str] = None
