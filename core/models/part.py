"""Content part models for AI message content."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

# Stand-in for non-text parts when content is flattened
IMAGE_PLACEHOLDER = "[image]"


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    type: Literal["image"] = "image"
    url: str
    mime: str | None = None


ContentPart = Annotated[TextPart | ImagePart, Field(discriminator="type")]


def flatten_to_text(content: str | list[TextPart | ImagePart]) -> str:
    """
    Flatten message content to plain text.

    Parts are joined with single spaces in their original order; image parts
    become an opaque placeholder token.

    Args:
        content: A plain string or an ordered list of content parts

    Returns:
        The flattened text
    """
    if isinstance(content, str):
        return content

    pieces = []
    for part in content:
        if isinstance(part, TextPart):
            pieces.append(part.text)
        else:
            pieces.append(IMAGE_PLACEHOLDER)
    return " ".join(pieces)
