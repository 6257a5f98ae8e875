"""Generation collaborator backed by LiteLLM model profiles."""

from __future__ import annotations

from loguru import logger

from sitesmith.models.generation import Classification, GenerationResult
from sitesmith.pipeline.parser import files_from_steps, parse_artifact, strip_fences
from sitesmith.providers.llm.base import Collaborator
from sitesmith.providers.llm.litellm_client import LiteLLMClient
from sitesmith.providers.llm.prompts import CLASSIFY_PROMPT, build_generation_prompt

_FRAMEWORKS = {item.value: item for item in (Classification.REACT, Classification.NODE)}


class LiteLLMCollaborator(Collaborator):
    """Classify the project, then ask for its files as action markup."""

    def __init__(
        self,
        client: LiteLLMClient,
        classifier_profile: str = "classifier",
        generator_profile: str = "generator",
    ) -> None:
        self._client = client
        self._classifier_profile = classifier_profile
        self._generator_profile = generator_profile

    async def classify(self, prompt: str) -> str:
        answer = await self._client.complete_text(
            self._classifier_profile, CLASSIFY_PROMPT.format(prompt=prompt)
        )
        return answer.strip().strip(".'\"`").lower()

    async def generate(self, prompt: str) -> GenerationResult:
        framework = await self.classify(prompt)
        logger.info("collaborator.classified framework={}", framework)
        classification = _FRAMEWORKS.get(framework)
        if classification is None:
            return GenerationResult(
                classification=Classification.ERROR,
                raw_text=f"Invalid framework selected by model: {framework!r}. Expected 'node' or 'react'.",
            )

        raw_text = await self._client.complete_text(
            self._generator_profile, build_generation_prompt(classification, prompt)
        )
        cleaned = strip_fences(raw_text).strip()
        files = files_from_steps(parse_artifact(cleaned))
        if not files:
            logger.warning("collaborator.no_files framework={}", framework)
        return GenerationResult(classification=classification, raw_text=cleaned, files=files)
