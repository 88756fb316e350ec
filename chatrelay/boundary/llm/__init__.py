"""Upstream LLM provider adapters."""

from chatrelay.boundary.llm.provider_client import ProviderClient

__all__ = ["ProviderClient"]
