"""LiteLLM client wrapper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import litellm

from sitesmith.config import load_yaml


class LiteLLMClient:
    def __init__(self, config_path: str = "config/models.yaml") -> None:
        self._config_path = Path(config_path)
        self._profiles = self._load_profiles()

    def _load_profiles(self) -> dict[str, dict[str, Any]]:
        profiles = load_yaml(self._config_path).get("profiles", {})
        if not isinstance(profiles, dict):
            return {}
        return profiles

    def get_profile(self, name: str) -> dict[str, Any]:
        profile = self._profiles.get(name)
        if not profile:
            raise KeyError(f"Unknown model profile: {name}")
        return profile

    async def acompletion(
        self,
        profile_name: str,
        messages: list[dict[str, str]],
        **overrides: Any,
    ) -> Any:
        profile = self.get_profile(profile_name)
        params: dict[str, Any] = {
            "model": profile["litellm_model"],
            "messages": messages,
            "temperature": profile.get("temperature", 0.2),
            "max_tokens": profile.get("max_output_tokens", 2048),
        }
        params.update(overrides)
        return await litellm.acompletion(**params)

    async def complete_text(self, profile_name: str, prompt: str, **overrides: Any) -> str:
        response = await self.acompletion(
            profile_name, [{"role": "user", "content": prompt}], **overrides
        )
        content = response.choices[0].message.content
        return content or ""
