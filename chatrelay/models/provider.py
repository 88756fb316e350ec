"""
Outgoing provider message schemas.

Message content sent upstream is a tagged variant decided when the
request is assembled: plain text, or structured parts (one text part
plus image references) for multimodal providers. Persisted messages
always keep plain text.

Dependencies: pydantic
System role: Provider request contract
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImageUrlPart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


ContentPart = Annotated[Union[TextPart, ImageUrlPart], Field(discriminator="type")]


class TextContent(BaseModel):
    """Plain string content."""

    kind: Literal["text"] = "text"
    text: str

    def to_wire(self) -> str:
        return self.text


class StructuredContent(BaseModel):
    """Multi-part content for providers accepting image input."""

    kind: Literal["parts"] = "parts"
    parts: list[ContentPart]

    def to_wire(self) -> list[dict[str, Any]]:
        return [part.model_dump() for part in self.parts]


MessageContent = Annotated[Union[TextContent, StructuredContent], Field(discriminator="kind")]


class ProviderMessage(BaseModel):
    """One entry of the ``messages`` array sent to the provider."""

    role: str
    content: MessageContent

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content.to_wire()}


class CompletionRequest(BaseModel):
    """Streaming chat-completion request body."""

    model: str
    messages: list[ProviderMessage]
    stream: bool = True

    def to_wire(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "stream": self.stream,
            "messages": [message.to_wire() for message in self.messages],
        }
