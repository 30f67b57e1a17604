from dataclasses import dataclass

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, LargeBinary, Text
from sqlalchemy.orm import deferred, relationship

from dugsi.database import Base


@dataclass(frozen=True)
class InlinePayload:
    data: bytes


@dataclass(frozen=True)
class RemotePayload:
    locator: str


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        # Exactly one representation of the bytes.
        CheckConstraint(
            "(payload IS NULL) <> (storage_locator IS NULL)",
            name="ck_documents_one_payload",
        ),
        CheckConstraint("file_size > 0", name="ck_documents_file_size"),
        Index("idx_documents_created", "created_at"),
        Index("idx_documents_title", "title"),
    )

    id = Column(Text, primary_key=True)
    title = Column(Text, nullable=False)
    file_name = Column(Text, nullable=False)
    content_type = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=False)
    page_count = Column(Integer)
    payload = deferred(Column(LargeBinary))
    storage_locator = Column(Text, unique=True)
    file_url = Column(Text, nullable=False)
    owner_id = Column(Text, ForeignKey("users.id"), nullable=False)
    created_at = Column(Text, nullable=False)

    owner = relationship("User", back_populates="documents")

    def payload_ref(self) -> InlinePayload | RemotePayload:
        if self.storage_locator is not None:
            return RemotePayload(self.storage_locator)
        return InlinePayload(self.payload)
