"""
Upstream provider configuration settings.

Base URLs and API keys for the chat-completion providers the relay
forwards to. Keys are optional at load time; a missing key is reported
when a request targets that provider.

Dependencies: pydantic, pydantic_settings
System role: Provider credential configuration
"""

from pydantic import Field

from chatrelay.configs.base import BaseSettings


class ProviderSettings(BaseSettings):
    """Credentials and endpoints for chat-completion providers."""

    deepseek_api_key: str | None = Field(default=None, description="DeepSeek API key")
    deepseek_base_url: str = Field(
        default="https://api.deepseek.com",
        description="DeepSeek API base URL",
    )
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )
    connect_timeout: float = Field(
        default=30.0,
        description="Seconds allowed for opening the provider connection",
    )
