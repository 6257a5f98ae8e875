"""Sandbox session orchestration."""

from sitesmith.sandbox.manager import PreviewManager
from sitesmith.sandbox.session import SandboxSession

__all__ = ["PreviewManager", "SandboxSession"]
