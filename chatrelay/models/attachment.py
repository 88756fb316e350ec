"""
Attachment schema.

An attachment is either a remote image (``url``, uploaded through a
storage side-channel) or a document whose text was extracted on the
client (``textContent``).

Dependencies: pydantic
System role: Attachment API contract
"""

from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """File attached to a user message."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Original file name")
    type: str = Field(default="", description="MIME type")
    size: int = Field(default=0, description="Size in bytes")
    url: str | None = Field(default=None, description="Remote URL for uploaded images")
    preview_ref: str | None = Field(
        default=None,
        alias="previewRef",
        description="Client-local preview reference",
    )
    text_content: str | None = Field(
        default=None,
        alias="textContent",
        description="Extracted document text",
    )

    @property
    def is_image(self) -> bool:
        """Image attachment that can be referenced by URL."""
        return self.type.startswith("image/") and bool(self.url)

    @property
    def is_document(self) -> bool:
        """Attachment carrying inlined extracted text."""
        return bool(self.text_content)
