"""Drive one prompt through generation, parsing, scaffolding and tree assembly."""

from __future__ import annotations

from dataclasses import replace
import itertools
from typing import Callable, Mapping, Optional

from loguru import logger

from sitesmith.errors import (
    CollaboratorError,
    EmptyFileMapError,
    SitesmithError,
    TreeConflictError,
)
from sitesmith.models.generation import Classification, GenerationResult, PipelineResult
from sitesmith.models.tree import FileNode
from sitesmith.pipeline.parser import parse_artifact
from sitesmith.pipeline.scaffold import DEFAULT_SCAFFOLD, SCAFFOLD_CLASSIFICATION, apply_scaffold
from sitesmith.pipeline.tree import build_file_tree
from sitesmith.providers.llm.base import Collaborator

DIAGNOSTIC_PATH = "error.txt"

Publisher = Callable[[PipelineResult], None]


class PipelineCoordinator:
    """Turn a prompt into a file tree and an audit trail of parsed steps.

    :meth:`run` never raises: collaborator failures, empty file maps and
    unplaceable paths become a single ``error.txt`` node. Results of a
    request that was overtaken by a newer one are returned but not published.
    """

    def __init__(
        self,
        collaborator: Collaborator,
        *,
        scaffold: Mapping[str, str] = DEFAULT_SCAFFOLD,
        scaffold_classification: Classification = SCAFFOLD_CLASSIFICATION,
    ) -> None:
        self._collaborator = collaborator
        self._scaffold = scaffold
        self._scaffold_classification = scaffold_classification
        self._request_ids = itertools.count(1)
        self._latest_request = 0
        self._current: Optional[PipelineResult] = None
        self._publishers: list[Publisher] = []

    @property
    def current(self) -> Optional[PipelineResult]:
        return self._current

    def current_tree(self) -> list[FileNode]:
        return list(self._current.tree) if self._current else []

    def subscribe(self, publisher: Publisher) -> Callable[[], None]:
        self._publishers.append(publisher)

        def release() -> None:
            if publisher in self._publishers:
                self._publishers.remove(publisher)

        return release

    async def run(self, prompt: str) -> PipelineResult:
        request_id = next(self._request_ids)
        self._latest_request = request_id
        logger.info("pipeline.request request_id={}", request_id)
        try:
            result = await self._generate(request_id, prompt)
        except SitesmithError as exc:
            logger.warning("pipeline.failed request_id={} error={}", request_id, exc)
            result = self._diagnostic(request_id, str(exc))

        if request_id != self._latest_request:
            logger.info(
                "pipeline.stale_result request_id={} latest={}",
                request_id,
                self._latest_request,
            )
            return replace(result, stale=True)
        self._publish(result)
        return result

    async def _generate(self, request_id: int, prompt: str) -> PipelineResult:
        try:
            generation = await self._collaborator.generate(prompt)
        except Exception as exc:
            logger.opt(exception=True).error("pipeline.collaborator_failed request_id={}", request_id)
            raise CollaboratorError(f"Error generating code: {exc}") from exc
        if not isinstance(generation, GenerationResult):
            raise CollaboratorError("Collaborator returned an unusable result")
        if generation.classification is Classification.ERROR:
            raise CollaboratorError(generation.raw_text or "Collaborator reported an error")

        steps = tuple(parse_artifact(generation.raw_text))
        logger.debug("pipeline.parsed request_id={} steps={}", request_id, len(steps))

        files = dict(generation.files)
        added = apply_scaffold(
            files,
            generation.classification,
            scaffold=self._scaffold,
            eligible=self._scaffold_classification,
        )
        if added:
            logger.info("pipeline.scaffolded request_id={} paths={}", request_id, added)
        if not files:
            raise EmptyFileMapError("No valid files found in response")

        try:
            tree = build_file_tree(files)
        except TreeConflictError as exc:
            raise CollaboratorError(f"Generated files could not be arranged: {exc}") from exc

        return PipelineResult(
            request_id=request_id,
            classification=generation.classification,
            steps=steps,
            tree=tree,
            files=files,
        )

    def _diagnostic(self, request_id: int, message: str) -> PipelineResult:
        content = f"Error: {message}"
        return PipelineResult(
            request_id=request_id,
            classification=Classification.ERROR,
            steps=(),
            tree=[FileNode.file(DIAGNOSTIC_PATH, DIAGNOSTIC_PATH, content)],
            files={DIAGNOSTIC_PATH: content},
            error=message,
        )

    def _publish(self, result: PipelineResult) -> None:
        self._current = result
        for publisher in list(self._publishers):
            try:
                publisher(result)
            except Exception:
                logger.opt(exception=True).warning(
                    "pipeline.publisher_failed request_id={}", result.request_id
                )
