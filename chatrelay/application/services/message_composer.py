"""
Message composition helpers.

Builds the durable user-message text (attachment markers inlined) and
the outgoing provider message list, including the multimodal rewrite
of the final history entry.

Dependencies: chatrelay.models
System role: Request assembly for the chat relay
"""

from collections.abc import Sequence

from chatrelay.models.attachment import Attachment
from chatrelay.models.provider import (
    ImageUrl,
    ImageUrlPart,
    ProviderMessage,
    StructuredContent,
    TextContent,
    TextPart,
)

PART_SEPARATOR = "\n\n"


def image_marker(attachment: Attachment) -> str:
    """Inline image markup referencing the attachment URL."""
    return f"![{attachment.name}]({attachment.url})"


def document_marker(attachment: Attachment) -> str:
    """Fenced block labeled with the file name, holding extracted text."""
    return f"**File: {attachment.name}**\n```\n{attachment.text_content}\n```"


def compose_user_content(text: str, attachments: Sequence[Attachment]) -> str:
    """
    Compose the persisted content of a user message.

    Image markers come first, then document blocks, then the typed text,
    separated by blank lines.

    Args:
        text: Literal message text
        attachments: Attachments submitted with the message

    Returns:
        str: Canonical message content
    """
    parts = [image_marker(att) for att in attachments if att.is_image]
    parts.extend(document_marker(att) for att in attachments if att.is_document)

    if not parts:
        return text
    if text:
        parts.append(text)
    return PART_SEPARATOR.join(parts)


def build_provider_messages(
    history: Sequence[tuple[str, str]],
    attachments: Sequence[Attachment] = (),
    multimodal: bool = False,
) -> list[ProviderMessage]:
    """
    Assemble the provider ``messages`` array from stored history.

    When the provider accepts images and the turn carries image
    attachments, the final entry becomes structured content: its text
    as a single text part followed by one image part per image.

    Args:
        history: Ordered (role, content) pairs, the new user message last
        attachments: Attachments of the current turn
        multimodal: Whether the selected provider accepts image parts

    Returns:
        list[ProviderMessage]: Messages ready for the completion request
    """
    messages = [
        ProviderMessage(role=role, content=TextContent(text=content))
        for role, content in history
    ]

    images = [att for att in attachments if att.is_image]
    if not (multimodal and images and messages):
        return messages

    last = messages[-1]
    parts: list = [TextPart(text=last.content.text)]
    parts.extend(ImageUrlPart(image_url=ImageUrl(url=att.url)) for att in images)
    messages[-1] = ProviderMessage(role=last.role, content=StructuredContent(parts=parts))
    return messages
