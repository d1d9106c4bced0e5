"""Result encoding: handler outputs to ordered content blocks."""

import base64
from typing import List, Literal, Sequence, Union

import mcp.types as types
from pydantic import BaseModel, ConfigDict

PNG_MEDIA_TYPE = "image/png"


class ClickableElement(BaseModel):
    """One interactable element found during a page inspection."""

    model_config = ConfigDict(frozen=True)

    index: int
    tag: str
    text: str

    def render(self) -> str:
        return f"[{self.index}] <{self.tag}>{self.text}</{self.tag}>"


class TextBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    data: bytes
    media_type: str = PNG_MEDIA_TYPE


ContentBlock = Union[TextBlock, ImageBlock]


class ElementListing(BaseModel):
    """A status line followed by the enumerated elements of a page."""

    status: str
    elements: List[ClickableElement]


class Screenshot(BaseModel):
    """A caption and the captured PNG bytes."""

    caption: str
    data: bytes


ToolOutput = Union[str, ElementListing, Screenshot]


def render_elements(elements: Sequence[ClickableElement]) -> str:
    return "\n".join(element.render() for element in elements)


def encode_result(output: ToolOutput) -> List[ContentBlock]:
    """Convert a handler's output into the uniform block sequence."""
    if isinstance(output, str):
        return [TextBlock(text=output)]
    if isinstance(output, ElementListing):
        return [TextBlock(text=f"{output.status}\n{render_elements(output.elements)}")]
    if isinstance(output, Screenshot):
        return [TextBlock(text=output.caption), ImageBlock(data=output.data)]
    raise TypeError(f"Unsupported tool output: {type(output).__name__}")


def to_mcp_content(
    blocks: Sequence[ContentBlock],
) -> List[Union[types.TextContent, types.ImageContent]]:
    """Map blocks onto protocol content; image bytes are base64 encoded here."""
    content: List[Union[types.TextContent, types.ImageContent]] = []
    for block in blocks:
        if isinstance(block, TextBlock):
            content.append(types.TextContent(type="text", text=block.text))
        else:
            content.append(
                types.ImageContent(
                    type="image",
                    data=base64.b64encode(block.data).decode("utf-8"),
                    mimeType=block.media_type,
                )
            )
    return content
