import logging
import uuid
from collections.abc import Iterator
from dataclasses import dataclass

from fastapi import UploadFile
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dugsi.errors import (
    BlobMissingError,
    DugsiError,
    NotFound,
    PayloadTooLarge,
    PersistenceError,
    StorageError,
    ValidationError,
)
from dugsi.models.document import Document, InlinePayload, RemotePayload
from dugsi.storage.base import BlobSink, make_locator
from dugsi.utils.clock import utc_timestamp

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
UPLOAD_CATEGORY = "papers"
TITLE_MIN, TITLE_MAX = 2, 120
PAGES_MIN, PAGES_MAX = 1, 2000
READ_CHUNK_BYTES = 1024 * 1024

SORT_ORDERS = {
    "newest": (Document.created_at.desc(), Document.id.desc()),
    "oldest": (Document.created_at.asc(), Document.id.asc()),
    "subject_asc": (func.lower(Document.title).asc(), Document.created_at.desc()),
    "subject_desc": (func.lower(Document.title).desc(), Document.created_at.desc()),
}


@dataclass
class DocumentFields:
    title: str
    file_name: str
    content_type: str
    file_size: int
    page_count: int | None
    owner_id: str


def validate_title(raw: str | None) -> str:
    title = (raw or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title")
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise ValidationError(
            f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters", field="title"
        )
    return title


def parse_page_count(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    value = raw.strip()
    try:
        pages = int(value)
    except ValueError:
        try:
            as_float = float(value)
        except ValueError:
            raise ValidationError("Page count must be a whole number", field="pageCount")
        if not as_float.is_integer():
            raise ValidationError("Page count must be a whole number", field="pageCount")
        pages = int(as_float)
    if not PAGES_MIN <= pages <= PAGES_MAX:
        raise ValidationError(
            f"Page count must be between {PAGES_MIN} and {PAGES_MAX}", field="pageCount"
        )
    return pages


def check_file_type(file: UploadFile | None) -> UploadFile:
    if file is None:
        raise ValidationError("Missing file", field="file")
    if file.content_type != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF uploads allowed", field="file")
    return file


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, refusing to buffer more than ``max_bytes``."""
    size = 0
    chunks: list[bytes] = []
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise PayloadTooLarge(f"File too large (max {max_bytes // (1024 * 1024)}MB)")
        chunks.append(chunk)
    content = b"".join(chunks)
    if not content:
        raise ValidationError("Empty file", field="file")
    return content


def create(db: Session, fields: DocumentFields, *, file_url: str | None = None,
           locator: str | None = None, payload: bytes | None = None,
           document_id: str | None = None) -> Document:
    if (locator is None) == (payload is None):
        raise ValueError("A document needs exactly one of locator or payload")
    doc_id = document_id or str(uuid.uuid4())
    doc = Document(
        id=doc_id,
        title=fields.title,
        file_name=fields.file_name,
        content_type=fields.content_type,
        file_size=fields.file_size,
        page_count=fields.page_count,
        payload=payload,
        storage_locator=locator,
        file_url=file_url,
        owner_id=fields.owner_id,
        created_at=utc_timestamp(),
    )
    try:
        db.add(doc)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError("Could not save document", cause=e) from e
    return doc


def store_document(db: Session, sink: BlobSink | None, fields: DocumentFields,
                   content: bytes, inline_url_prefix: str) -> Document:
    """Persist bytes, then the record that points at them.

    With ``sink`` set the bytes go to the blob sink first; the record is only
    created once ``put`` has succeeded. With ``sink`` None the bytes are kept
    inline in the record itself.
    """
    doc_id = str(uuid.uuid4())
    if sink is None:
        return create(
            db,
            fields,
            payload=content,
            file_url=f"{inline_url_prefix}/{doc_id}",
            document_id=doc_id,
        )

    locator = make_locator(UPLOAD_CATEGORY, fields.file_name, doc_id)
    url = sink.put(locator, content, fields.content_type)
    try:
        return create(db, fields, locator=locator, file_url=url, document_id=doc_id)
    except PersistenceError:
        # The record never existed; drop the blob so it is not orphaned either.
        try:
            sink.delete(locator)
        except StorageError:
            logger.exception("Could not remove blob %s after failed insert", locator)
        raise


def find_by_id(db: Session, document_id: str) -> Document | None:
    try:
        return db.get(Document, document_id)
    except SQLAlchemyError as e:
        raise PersistenceError(cause=e) from e


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_documents(db: Session, *, subject: str | None = None, q: str | None = None,
                   sort: str = "newest", page: int = 1,
                   page_size: int = 12) -> tuple[list[Document], int, int]:
    """Return (rows, total, page) for one page of metadata-only records."""
    if sort not in SORT_ORDERS:
        raise ValidationError(
            f"sort must be one of: {', '.join(SORT_ORDERS)}", field="sort"
        )
    page = max(1, page)

    query = db.query(Document)
    if subject and subject.strip():
        query = query.filter(Document.title == subject.strip())
    if q and q.strip():
        pattern = f"%{_escape_like(q.strip())}%"
        query = query.filter(or_(
            Document.title.ilike(pattern, escape="\\"),
            Document.file_name.ilike(pattern, escape="\\"),
        ))

    try:
        total = query.count()
        offset = (page - 1) * page_size
        # Past the last page: nothing to fetch, and huge offsets cannot be bound.
        if offset >= total:
            return [], total, page
        rows = (
            query.order_by(*SORT_ORDERS[sort])
            .offset(offset)
            .limit(page_size)
            .all()
        )
    except SQLAlchemyError as e:
        raise PersistenceError(cause=e) from e
    return rows, total, page


def open_payload(doc: Document, sink: BlobSink) -> Iterator[bytes]:
    """Return an iterator over the stored bytes, exactly as written.

    A missing payload is reported here as NotFound, before any byte is sent.
    """
    ref = doc.payload_ref()
    if isinstance(ref, InlinePayload):
        if ref.data is None:
            raise NotFound("Document not found", reason="payload")
        return iter([ref.data])
    if isinstance(ref, RemotePayload):
        try:
            return sink.open_stream(ref.locator)
        except BlobMissingError as e:
            raise NotFound("Document not found", reason="payload") from e
    raise DugsiError(f"Unknown payload representation for document {doc.id}")


def delete_document(db: Session, sink: BlobSink, doc: Document) -> None:
    """Remove the record and its bytes together.

    The row delete is flushed first so a database failure stops us before the
    blob is touched. A blob failure rolls the row delete back.
    """
    locator = doc.storage_locator
    try:
        db.delete(doc)
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError("Could not delete document", cause=e) from e

    if locator is not None:
        try:
            sink.delete(locator)
        except StorageError:
            db.rollback()
            raise

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Blob %s deleted but record %s commit failed", locator, doc.id)
        raise PersistenceError("Could not delete document", cause=e) from e
