"""Artifact parser for ``<action>`` markup emitted by the generator."""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from sitesmith.models.artifact import FILE_ACTION_TYPE, Step, StepType

_OPEN_TAG = "<action"
_CLOSE_TAG = "</action>"
_FENCE = "```"


def strip_fences(text: str) -> str:
    """Drop opening and closing code-fence lines, whatever the language tag."""
    lines = [
        line for line in text.splitlines() if not line.lstrip().startswith(_FENCE)
    ]
    return "\n".join(lines)


def parse_artifact(text: str) -> list[Step]:
    """Return the actions found in ``text`` in source order.

    Bodies run up to the first closing tag and are trimmed. Text without
    any action elements yields an empty list.
    """
    source = strip_fences(text)
    steps: list[Step] = []
    position = 0
    while True:
        start = _find_open_tag(source, position)
        if start < 0:
            break
        tag_end = _find_tag_end(source, start + len(_OPEN_TAG))
        if tag_end < 0:
            break
        close = source.find(_CLOSE_TAG, tag_end + 1)
        if close < 0:
            break
        attributes = _parse_attributes(source[start + len(_OPEN_TAG) : tag_end])
        body = source[tag_end + 1 : close].strip()
        position = close + len(_CLOSE_TAG)

        step = _make_step(attributes, body)
        if step is None:
            logger.debug("artifact.action_skipped attributes={}", attributes)
            continue
        steps.append(step)
    return steps


def files_from_steps(steps: Iterable[Step]) -> dict[str, str]:
    files: dict[str, str] = {}
    for step in steps:
        if step.type is StepType.FILE_WRITE and step.path:
            files[step.path] = step.content or ""
    return files


def _find_open_tag(source: str, position: int) -> int:
    while True:
        start = source.find(_OPEN_TAG, position)
        if start < 0:
            return -1
        following = source[start + len(_OPEN_TAG) : start + len(_OPEN_TAG) + 1]
        # Reject longer tag names such as <actions>.
        if following == ">" or following.isspace():
            return start
        position = start + len(_OPEN_TAG)


def _find_tag_end(source: str, position: int) -> int:
    quote: Optional[str] = None
    for index in range(position, len(source)):
        char = source[index]
        if quote:
            if char == quote:
                quote = None
        elif char in ('"', "'"):
            quote = char
        elif char == ">":
            return index
    return -1


def _parse_attributes(raw: str) -> dict[str, str]:
    attributes: dict[str, str] = {}
    index = 0
    length = len(raw)
    while index < length:
        while index < length and (raw[index].isspace() or raw[index] == "/"):
            index += 1
        name_start = index
        while index < length and not raw[index].isspace() and raw[index] not in "=/":
            index += 1
        name = raw[name_start:index].lower()
        if not name:
            break
        while index < length and raw[index].isspace():
            index += 1
        if index >= length or raw[index] != "=":
            attributes.setdefault(name, "")
            continue
        index += 1
        while index < length and raw[index].isspace():
            index += 1
        if index < length and raw[index] in ('"', "'"):
            quote = raw[index]
            end = raw.find(quote, index + 1)
            if end < 0:
                end = length
            value = raw[index + 1 : end]
            index = end + 1
        else:
            value_start = index
            while index < length and not raw[index].isspace():
                index += 1
            value = raw[value_start:index]
        attributes.setdefault(name, value)
    return attributes


def _make_step(attributes: dict[str, str], body: str) -> Optional[Step]:
    action_type = attributes.get("type", "")
    path = attributes.get("path") or None
    if action_type == FILE_ACTION_TYPE:
        if path is None:
            return None
        return Step(
            type=StepType.FILE_WRITE,
            action_type=action_type,
            path=path,
            content=body,
        )
    return Step(type=StepType.OTHER, action_type=action_type, path=path, content=body)
