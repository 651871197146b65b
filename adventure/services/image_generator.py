import logging
import re
from typing import Any, Iterator, Optional

import openai

from adventure.core.config import settings
from adventure.schemas.game import ImageModel

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


class ImageGenerationError(Exception):
    """Raised when an image endpoint answers without any image payload."""


def make_client() -> openai.AsyncOpenAI:
    return openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY, base_url=settings.OPENAI_BASE_URL)


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _iter_message_parts(message: Any) -> Iterator[Any]:
    content = _get(message, "content")
    if isinstance(content, list):
        yield from content
    images = _get(message, "images")
    if images:
        yield from images


def _inline_image(part: Any) -> Optional[str]:
    """
    Returns a data URI for a part carrying inline image bytes, otherwise None.
    Handles both `image_url` parts holding a data URI and `inline_data` parts
    holding raw base64 plus a MIME type.
    """
    image_url = _get(part, "image_url")
    if image_url is not None:
        url = _get(image_url, "url") if not isinstance(image_url, str) else image_url
        match = DATA_URI_PATTERN.match(url or "")
        if match:
            return f"data:{match.group('mime')};base64,{match.group('data')}"

    inline_data = _get(part, "inline_data")
    if inline_data is not None and _get(inline_data, "data"):
        mime_type = _get(inline_data, "mime_type") or "image/png"
        return f"data:{mime_type};base64,{_get(inline_data, 'data')}"
    return None


async def _generate_still_image(client: openai.AsyncOpenAI, prompt: str) -> str:
    response = await client.images.generate(
        model=settings.IMAGE_MODEL_QUALITY,
        prompt=prompt,
        n=1,
        size=settings.IMAGE_SIZE,
        output_format="jpeg",
    )
    b64_data = response.data[0].b64_json if response.data else None
    if not b64_data:
        raise ImageGenerationError(f"Image generation with {settings.IMAGE_MODEL_QUALITY} returned no image data.")
    return f"data:image/jpeg;base64,{b64_data}"


async def _generate_chat_image(client: openai.AsyncOpenAI, prompt: str) -> str:
    response = await client.chat.completions.create(
        model=settings.IMAGE_MODEL_FAST,
        messages=[{"role": "user", "content": [{"type": "text", "text": prompt}]}],
        extra_body={"modalities": ["image"]},
    )
    for choice in response.choices or []:
        for part in _iter_message_parts(choice.message):
            data_uri = _inline_image(part)
            if data_uri:
                return data_uri
    raise ImageGenerationError(f"Image generation with {settings.IMAGE_MODEL_FAST} failed.")


async def generate_image(prompt: str, model: ImageModel, client: Optional[openai.AsyncOpenAI] = None) -> str:
    """
    Generates one scene illustration and returns it as a base64 data URI.

    `ImageModel.QUALITY` uses the dedicated image endpoint (one wide JPEG),
    `ImageModel.FAST` asks an image-capable chat model for image-only output
    and takes the first inline image of the reply.
    """
    client = client or make_client()
    logging.info(f"Generating image with backend '{model.value}'")
    if model == ImageModel.QUALITY:
        return await _generate_still_image(client, prompt)
    return await _generate_chat_image(client, prompt)
