from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from sitesmith.config import Settings, load_settings
from sitesmith.logging_utils import configure_logging
from sitesmith.pipeline.coordinator import PipelineCoordinator
from sitesmith.providers.llm.base import Collaborator
from sitesmith.providers.llm.collaborator import LiteLLMCollaborator
from sitesmith.providers.llm.litellm_client import LiteLLMClient
from sitesmith.providers.sandbox.base import SandboxService
from sitesmith.providers.sandbox.local import LocalSandboxService
from sitesmith.retry import Sleep
from sitesmith.sandbox.manager import PreviewManager


class GenerateRequest(BaseModel):
    prompt: str


def create_app(
    settings: Optional[Settings] = None,
    collaborator: Optional[Collaborator] = None,
    sandbox_service: Optional[SandboxService] = None,
    sleep: Sleep = asyncio.sleep,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    if collaborator is None:
        client = LiteLLMClient(settings.models_config)
        collaborator = LiteLLMCollaborator(
            client,
            classifier_profile=settings.classifier_profile,
            generator_profile=settings.generator_profile,
        )
    local_service: Optional[LocalSandboxService] = None
    if sandbox_service is None:
        local_service = LocalSandboxService(base_dir=settings.sandbox_dir)
        sandbox_service = local_service

    coordinator = PipelineCoordinator(collaborator)
    previews = PreviewManager(
        sandbox_service,
        install_command=settings.install_command,
        run_command=settings.run_command,
        boot_attempts=settings.boot_attempts,
        boot_delay_s=settings.boot_delay_s,
        sleep=sleep,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        previews.close()
        if local_service is not None:
            local_service.teardown()

    app = FastAPI(title="sitesmith", lifespan=lifespan)
    app.state.coordinator = coordinator
    app.state.previews = previews

    @app.get("/health")
    def health_check() -> dict:
        return {"status": "ok"}

    @app.post("/generate")
    async def generate(request: GenerateRequest) -> dict:
        prompt = request.prompt.strip()
        if not prompt:
            raise HTTPException(status_code=400, detail="Prompt must not be empty")
        result = await coordinator.run(prompt)
        return result.to_dict()

    @app.post("/preview")
    async def start_preview() -> dict:
        tree = coordinator.current_tree()
        if not tree:
            raise HTTPException(status_code=409, detail="Generate a project before previewing it")
        previews.launch_in_background(tree)
        return previews.state.to_dict()

    @app.get("/preview")
    def preview_status() -> dict:
        return previews.state.to_dict()

    return app
