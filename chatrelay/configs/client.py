"""
Client-side configuration settings.

Location of the relay for the stream consumer and the session/message
store client.

Dependencies: pydantic, pydantic_settings
System role: Client configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from chatrelay.configs.base import BaseSettings


class ClientSettings(BaseSettings):
    """Relay address and credentials used by the chat client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHATRELAY_",
        case_sensitive=False,
        extra="ignore",
    )

    relay_url: str | None = Field(
        default=None,
        description="Base URL of the relay API, e.g. http://localhost:8000/api/v1",
    )
    api_key: str | None = Field(default=None, description="Bearer token sent to the relay")
    default_model: str = Field(default="deepseek-chat", description="Initially selected model")
