"""Sandbox service implementations and interfaces."""

from sitesmith.providers.sandbox.base import SandboxHandle, SandboxProcess, SandboxService, Subscription
from sitesmith.providers.sandbox.local import LocalSandboxService

__all__ = [
    "LocalSandboxService",
    "SandboxHandle",
    "SandboxProcess",
    "SandboxService",
    "Subscription",
]
