"""Provider package for sandbox and LLM integrations."""

from sitesmith.providers.llm.base import Collaborator
from sitesmith.providers.llm.collaborator import LiteLLMCollaborator
from sitesmith.providers.llm.litellm_client import LiteLLMClient
from sitesmith.providers.sandbox import LocalSandboxService, SandboxService

__all__ = [
    "Collaborator",
    "LiteLLMClient",
    "LiteLLMCollaborator",
    "LocalSandboxService",
    "SandboxService",
]
