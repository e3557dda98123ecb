"""
Text recognition stage of the extraction pipeline.

Turns a photo of a written prayer into plain text. The recognition engine
is blocking and runs in a worker thread; the stage never touches a Prayer,
the caller decides what to do with the returned text.
"""

import asyncio
import base64
import logging
from io import BytesIO
from typing import Iterable, List, Optional, Sequence, Union

import litellm
from PIL import Image, UnidentifiedImageError

from ..domain.errors import ExtractionError, InvalidImageError, NoTextFound, RecognitionFailed
from ..domain.ports import TextRecognizer
from ..utils.logging import PipelineLogContext, get_pipeline_logger

logger = logging.getLogger(__name__)
pipeline_logger = get_pipeline_logger("text_recognition")

DEFAULT_LANGUAGES = ("ko-KR", "en-US")
PAGE_SEPARATOR = "\n\n---\n\n"

ImageInput = Union[bytes, Image.Image]

_OCR_PROMPT = """Transcribe all text visible in this image exactly as written.
Expected languages: {languages}.
Output one line of text per line in the image, in reading order.
Do not translate, correct, summarize or add anything.
If the image contains no readable text, reply with an empty message."""


class LiteLLMVisionRecognizer:
    """TextRecognizer backed by a LiteLLM vision model."""

    def __init__(self, model: str = "gpt-4o-mini", max_size: int = 1024) -> None:
        self.model = model
        self.max_size = max_size

    def _prepare_image(self, image: Image.Image) -> str:
        """Resize to the model's working size and encode as base64 JPEG."""
        if image.mode != "RGB":
            image = image.convert("RGB")

        if max(image.size) > self.max_size:
            ratio = self.max_size / max(image.size)
            new_size = tuple(int(dim * ratio) for dim in image.size)
            image = image.resize(new_size, Image.Resampling.LANCZOS)

        output = BytesIO()
        image.save(output, format="JPEG", quality=85, optimize=True)
        return base64.b64encode(output.getvalue()).decode("utf-8")

    def recognize(self, image: Image.Image, languages: Sequence[str]) -> List[str]:
        image_b64 = self._prepare_image(image)
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": _OCR_PROMPT.format(languages=", ".join(languages))},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/jpeg;base64,{image_b64}"},
                    },
                ],
            }
        ]

        logger.info(f"Calling vision model for OCR: {self.model}")
        response = litellm.completion(
            model=self.model,
            messages=messages,
            max_tokens=1500,
            temperature=0,
        )
        content = response.choices[0].message.content or ""
        return [line.strip() for line in content.splitlines() if line.strip()]


def _decode_image(image: ImageInput) -> Image.Image:
    if isinstance(image, Image.Image):
        if image.width == 0 or image.height == 0:
            raise InvalidImageError("Image has no pixels")
        return image

    try:
        with Image.open(BytesIO(image)) as decoded:
            decoded.load()
            return decoded.copy()
    except (UnidentifiedImageError, OSError, ValueError, TypeError) as e:
        raise InvalidImageError(f"Cannot decode image: {e}") from e


class TextRecognitionService:
    """Recognition stage: image in, newline-joined text out."""

    def __init__(
        self,
        recognizer: TextRecognizer,
        languages: Sequence[str] = DEFAULT_LANGUAGES,
    ) -> None:
        self.recognizer = recognizer
        self.languages = tuple(languages)

    async def recognize(self, image: ImageInput) -> str:
        """Recognize text in a single image.

        Raises:
            InvalidImageError: the input cannot be decoded
            RecognitionFailed: the engine raised
            NoTextFound: the engine returned nothing but whitespace
        """
        with PipelineLogContext("recognize_text", engine=type(self.recognizer).__name__):
            decoded = await asyncio.to_thread(_decode_image, image)

            try:
                lines = await asyncio.to_thread(
                    self.recognizer.recognize, decoded, self.languages
                )
            except ExtractionError:
                raise
            except Exception as e:
                logger.error(f"Text recognition engine failed: {e}")
                raise RecognitionFailed(str(e)) from e

            text = "\n".join(line for line in lines if line and line.strip()).strip()
            if not text:
                raise NoTextFound()

            pipeline_logger.info(
                "Text recognized", line_count=len(lines), char_count=len(text)
            )
            return text

    async def recognize_many(self, images: Iterable[ImageInput]) -> str:
        """Recognize several pages, skipping ones without text."""
        pages: List[str] = []
        for index, image in enumerate(images):
            try:
                pages.append(await self.recognize(image))
            except NoTextFound:
                logger.info(f"No text on page {index + 1}, skipping")

        if not pages:
            raise NoTextFound()
        return PAGE_SEPARATOR.join(pages)


def merge_into_content(existing: Optional[str], extracted: str) -> str:
    """Append extracted text after the user's text without ever clearing it."""
    existing = existing or ""
    if not extracted or not extracted.strip():
        return existing
    if not existing.strip():
        return extracted.strip()
    return f"{existing.rstrip()}\n\n{extracted.strip()}"
