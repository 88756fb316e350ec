"""
Provider registry.

Static mapping from requested model name to the upstream chat-completion
provider, plus the capability flags the relay and the client need
(multimodal input, reasoning channel).

Dependencies: chatrelay.configs.providers, chatrelay.core.exceptions
System role: Model-to-provider routing
"""

from dataclasses import dataclass
from typing import Any

from chatrelay.configs.providers import ProviderSettings
from chatrelay.core.exceptions import ProviderConfigurationError


@dataclass(frozen=True)
class ProviderSpec:
    """
    Static description of one provider.

    Attributes:
        name: Registry key
        display_name: Name used in error messages
        model_prefixes: Model name prefixes routed to this provider
        api_key_field: ProviderSettings attribute holding the API key
        base_url_field: ProviderSettings attribute holding the base URL
        supports_multimodal: Whether image parts are accepted in messages
    """

    name: str
    display_name: str
    model_prefixes: tuple[str, ...]
    api_key_field: str
    base_url_field: str
    supports_multimodal: bool = False


@dataclass(frozen=True)
class ProviderTarget:
    """Resolved provider with credentials for a single request."""

    spec: ProviderSpec
    base_url: str
    api_key: str

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


OPENAI = ProviderSpec(
    name="openai",
    display_name="OpenAI",
    model_prefixes=("gpt-",),
    api_key_field="openai_api_key",
    base_url_field="openai_base_url",
    supports_multimodal=True,
)

DEEPSEEK = ProviderSpec(
    name="deepseek",
    display_name="DeepSeek",
    model_prefixes=("deepseek-",),
    api_key_field="deepseek_api_key",
    base_url_field="deepseek_base_url",
)

PROVIDERS: tuple[ProviderSpec, ...] = (OPENAI, DEEPSEEK)
DEFAULT_PROVIDER = DEEPSEEK

# Models that stream a separate reasoning_content channel
REASONING_MODELS = frozenset({"deepseek-reasoner"})


def resolve_provider(model: str) -> ProviderSpec:
    """
    Select the provider for a model by name prefix.

    Unknown model names fall back to the default provider.

    Args:
        model: Requested model name

    Returns:
        ProviderSpec: Matching provider
    """
    for spec in PROVIDERS:
        if model.startswith(spec.model_prefixes):
            return spec
    return DEFAULT_PROVIDER


def supports_reasoning(model: str) -> bool:
    """Whether the model streams a reasoning channel."""
    return model in REASONING_MODELS


def supports_multimodal(model: str) -> bool:
    """Whether the model's provider accepts structured image content."""
    return resolve_provider(model).supports_multimodal


def resolve_target(model: str, settings: ProviderSettings) -> ProviderTarget:
    """
    Resolve provider and credentials for a request.

    Args:
        model: Requested model name
        settings: Provider credentials and base URLs

    Returns:
        ProviderTarget: Provider with base URL and API key

    Raises:
        ProviderConfigurationError: If the provider's API key is not set
    """
    spec = resolve_provider(model)
    api_key = getattr(settings, spec.api_key_field)
    if not api_key:
        raise ProviderConfigurationError(spec.display_name, spec.api_key_field.upper())
    return ProviderTarget(
        spec=spec,
        base_url=getattr(settings, spec.base_url_field),
        api_key=api_key,
    )


def flatten_text(value: Any) -> str:
    """
    Flatten a delta field that may be a string or a list of text parts.

    Args:
        value: ``delta.content`` / ``delta.reasoning_content`` as received

    Returns:
        str: Concatenated text ("" for anything else)
    """
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "".join(
            item.get("text") or "" for item in value if isinstance(item, dict)
        )
    return ""
