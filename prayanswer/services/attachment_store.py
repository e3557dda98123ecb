"""
Attachment file storage.

Images are re-encoded as JPEG, PDFs are copied verbatim, and every file
gets a UUID based name inside a single attachment directory. All methods
block on disk I/O; async callers run them through ``asyncio.to_thread``.
"""

import logging
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import pypdfium2 as pdfium
from PIL import Image, ImageOps, UnidentifiedImageError

from ..domain.errors import (
    AttachmentDeleteFailed,
    AttachmentDirectoryCreationFailed,
    AttachmentLoadFailed,
    AttachmentTooLarge,
    AttachmentWriteFailed,
    InvalidAttachmentImage,
    UnsupportedAttachmentFormat,
)
from ..models.enums import AttachmentType

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB
PDF_MAGIC = b"%PDF"
DEFAULT_IMAGE_NAME = "Image.jpg"

_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".heic", ".gif", ".webp", ".bmp", ".tiff"}


@dataclass(frozen=True)
class AttachmentSaveResult:
    file_name: str
    original_name: str
    size_bytes: int
    type: AttachmentType
    ocr_text: Optional[str] = None


class AttachmentStore:
    """Saves, loads and deletes attachment files under ``base_dir``."""

    def __init__(
        self,
        base_dir: Union[str, Path],
        max_file_size: int = MAX_FILE_SIZE,
        image_quality: int = 70,
        thumbnail_size: Tuple[int, int] = (200, 200),
    ):
        self.base_dir = Path(base_dir)
        self.max_file_size = max_file_size
        self.image_quality = image_quality
        self.thumbnail_size = thumbnail_size

    # --- Paths ---

    def _ensure_dir(self) -> Path:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create attachment directory {self.base_dir}: {e}")
            raise AttachmentDirectoryCreationFailed(str(self.base_dir)) from e
        return self.base_dir

    def path_for(self, file_name: str) -> Path:
        """Absolute path of a stored file; rejects names that escape the directory."""
        if not file_name or file_name in (".", "..") or "/" in file_name or "\\" in file_name:
            raise AttachmentLoadFailed(f"Invalid attachment file name: {file_name!r}")
        return self.base_dir / file_name

    def exists(self, file_name: str) -> bool:
        try:
            return self.path_for(file_name).is_file()
        except AttachmentLoadFailed:
            return False

    # --- Save ---

    def save(
        self,
        data: bytes,
        declared_type: AttachmentType,
        original_name: Optional[str] = None,
    ) -> AttachmentSaveResult:
        """Store a new attachment and return its metadata.

        Raises:
            AttachmentTooLarge: input or re-encoded image exceeds the limit
            UnsupportedAttachmentFormat: PDF data without a PDF header
            InvalidAttachmentImage: image data Pillow cannot decode
            AttachmentDirectoryCreationFailed: attachment directory unavailable
            AttachmentWriteFailed: the file could not be written
        """
        if len(data) > self.max_file_size:
            raise AttachmentTooLarge(len(data), self.max_file_size)

        if declared_type is AttachmentType.IMAGE:
            payload = self._encode_jpeg(data)
            if len(payload) > self.max_file_size:
                raise AttachmentTooLarge(len(payload), self.max_file_size)
            file_name = f"{uuid.uuid4()}.jpg"
            display_name = original_name or DEFAULT_IMAGE_NAME
        elif declared_type is AttachmentType.PDF:
            if not data.startswith(PDF_MAGIC):
                raise UnsupportedAttachmentFormat("Data is not a PDF document")
            payload = data
            file_name = f"{uuid.uuid4()}.pdf"
            display_name = original_name or file_name
        else:
            raise UnsupportedAttachmentFormat(f"Unsupported attachment type: {declared_type}")

        directory = self._ensure_dir()
        path = directory / file_name
        try:
            path.write_bytes(payload)
        except OSError as e:
            logger.error(f"Failed to write attachment {file_name}: {e}")
            path.unlink(missing_ok=True)
            raise AttachmentWriteFailed(file_name) from e

        logger.info(f"Saved {declared_type.value} attachment {file_name} ({len(payload)} bytes)")
        return AttachmentSaveResult(
            file_name=file_name,
            original_name=display_name,
            size_bytes=len(payload),
            type=declared_type,
        )

    def save_file(self, source: Union[str, Path]) -> AttachmentSaveResult:
        """Store a file picked from disk, inferring its type from the extension."""
        source = Path(source)
        suffix = source.suffix.lower()
        if suffix == ".pdf":
            declared_type = AttachmentType.PDF
        elif suffix in _IMAGE_EXTENSIONS:
            declared_type = AttachmentType.IMAGE
        else:
            raise UnsupportedAttachmentFormat(f"Unsupported file extension: {suffix or '(none)'}")

        try:
            size = source.stat().st_size
        except OSError as e:
            raise AttachmentLoadFailed(str(source)) from e
        if size > self.max_file_size:
            raise AttachmentTooLarge(size, self.max_file_size)

        try:
            data = source.read_bytes()
        except OSError as e:
            raise AttachmentLoadFailed(str(source)) from e

        return self.save(data, declared_type, original_name=source.name)

    def _encode_jpeg(self, data: bytes) -> bytes:
        try:
            with Image.open(BytesIO(data)) as image:
                image.load()
                image = ImageOps.exif_transpose(image)
                if image.mode != "RGB":
                    image = image.convert("RGB")
                buffer = BytesIO()
                image.save(buffer, "JPEG", quality=self.image_quality, optimize=True)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise InvalidAttachmentImage(f"Cannot decode image: {e}") from e
        return buffer.getvalue()

    # --- Load ---

    def load_image(self, file_name: str) -> Optional[Image.Image]:
        path = self.path_for(file_name)
        if not path.is_file():
            return None
        try:
            with Image.open(path) as image:
                image.load()
                return image.copy()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Cannot decode stored image {file_name}: {e}")
            return None

    def load_thumbnail(self, file_name: str, type: AttachmentType) -> Optional[Image.Image]:
        """Image downscaled into the thumbnail box, keeping aspect ratio."""
        if type is AttachmentType.PDF:
            return self._pdf_thumbnail(file_name)

        image = self.load_image(file_name)
        if image is None:
            return None
        image.thumbnail(self.thumbnail_size, Image.Resampling.LANCZOS)
        return image

    def _pdf_thumbnail(self, file_name: str) -> Optional[Image.Image]:
        path = self.path_for(file_name)
        if not path.is_file():
            return None

        try:
            pdf = pdfium.PdfDocument(str(path))
        except pdfium.PdfiumError as e:
            logger.warning(f"Cannot open PDF {file_name}: {e}")
            return None

        try:
            if len(pdf) == 0:
                return None
            page = pdf[0]
            try:
                width, height = page.get_size()
                box_w, box_h = self.thumbnail_size
                scale = min(box_w / width, box_h / height)
                bitmap = page.render(scale=scale, fill_color=(255, 255, 255, 255))
                return bitmap.to_pil().convert("RGB")
            finally:
                page.close()
        except pdfium.PdfiumError as e:
            logger.warning(f"Cannot render PDF thumbnail for {file_name}: {e}")
            return None
        finally:
            pdf.close()

    # --- Delete ---

    def delete(self, file_name: str) -> None:
        """Remove a stored file; a file that is already gone is success."""
        path = self.path_for(file_name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete attachment {file_name}: {e}")
            raise AttachmentDeleteFailed(file_name) from e
        logger.info(f"Deleted attachment {file_name}")

    def delete_many(self, file_names: Iterable[str]) -> int:
        """Best-effort delete; returns how many files could not be removed."""
        failures = 0
        for file_name in file_names:
            try:
                self.delete(file_name)
            except (AttachmentDeleteFailed, AttachmentLoadFailed) as e:
                failures += 1
                logger.warning(f"Skipping attachment cleanup for {file_name}: {e}")
        return failures
