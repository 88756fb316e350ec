"""
Relay behaviour settings.

Dependencies: pydantic, pydantic_settings
System role: Chat relay defaults (model, session titles)
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from chatrelay.configs.base import BaseSettings


class RelaySettings(BaseSettings):
    """Defaults applied by the chat relay endpoint."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RELAY_",
        case_sensitive=False,
        extra="ignore",
    )

    default_model: str = Field(default="deepseek-chat", description="Model used when none is requested")
    title_length: int = Field(default=32, description="Characters of the first message kept as session title")
    default_title: str = Field(default="New conversation", description="Title for sessions without text")
