from typing import Optional

from sqlalchemy import Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .enums import AttachmentType, enum_values


class Attachment(Base, TimestampMixin):
    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prayer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("prayers.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Stored file name inside the attachment directory (UUID based)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AttachmentType] = mapped_column(
        Enum(AttachmentType, values_callable=enum_values, native_enum=False),
        nullable=False,
    )
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False, default=0)

    # Recognized text (images only), editable by the user
    ocr_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    prayer: Mapped["Prayer"] = relationship("Prayer", back_populates="attachments")  # noqa: F821

    @property
    def is_image(self) -> bool:
        return self.type is AttachmentType.IMAGE

    @property
    def is_pdf(self) -> bool:
        return self.type is AttachmentType.PDF

    @property
    def formatted_file_size(self) -> str:
        size = self.file_size or 0
        if size >= 1024 * 1024:
            return f"{size / (1024 * 1024):.1f} MB"
        return f"{max(size // 1024, 1)} KB"

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, file_name={self.file_name}, type={self.type}, order={self.order})>"
