import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from dugsi.config import settings
from dugsi.database import get_db
from dugsi.dependencies import get_sink, require_principal, require_uploader
from dugsi.errors import Forbidden, NotFound
from dugsi.models.document import Document
from dugsi.schemas.document import (
    DocumentCreated,
    DocumentListResponse,
    DocumentSummary,
    UploadResponse,
)
from dugsi.services import document_service
from dugsi.services.document_service import DocumentFields
from dugsi.services.session_service import Principal
from dugsi.storage.base import BlobSink
from dugsi.utils.filesystem import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _doc_to_created(doc: Document) -> DocumentCreated:
    return DocumentCreated(
        id=doc.id,
        title=doc.title,
        subject=doc.title,
        page_count=doc.page_count,
        pages=doc.page_count,
        file_url=doc.file_url,
        file_name=doc.file_name,
    )


def _doc_to_summary(doc: Document) -> DocumentSummary:
    return DocumentSummary(
        id=doc.id,
        title=doc.title,
        subject=doc.title,
        page_count=doc.page_count,
        pages=doc.page_count,
        file_url=doc.file_url,
        file_name=doc.file_name,
        file_size=doc.file_size,
        content_type=doc.content_type,
        owner_id=doc.owner_id,
        created_at=doc.created_at,
    )


def _first_filled(*values: str | None) -> str | None:
    for v in values:
        if v is not None and v.strip():
            return v
    return None


@router.post("", response_model=UploadResponse, status_code=201)
async def upload_document(
    file: UploadFile | None = File(None),
    title: str | None = Form(None),
    subject: str | None = Form(None),
    name: str | None = Form(None),
    page_count: str | None = Form(None, alias="pageCount"),
    total_pages: str | None = Form(None, alias="totalPages"),
    pages: str | None = Form(None),
    principal: Principal = Depends(require_uploader),
    db: Session = Depends(get_db),
    sink: BlobSink = Depends(get_sink),
):
    clean_title = document_service.validate_title(_first_filled(title, subject))
    clean_pages = document_service.parse_page_count(_first_filled(page_count, total_pages, pages))

    upload = document_service.check_file_type(file)
    content = await document_service.read_upload(upload, settings.max_upload_bytes)

    display_name = name.strip() if name and name.strip() else upload.filename
    fields = DocumentFields(
        title=clean_title,
        file_name=sanitize_filename(display_name),
        content_type=upload.content_type,
        file_size=len(content),
        page_count=clean_pages,
        owner_id=principal.id,
    )

    doc = document_service.store_document(
        db,
        None if settings.inline_payloads else sink,
        fields,
        content,
        inline_url_prefix=f"{settings.api_prefix}{router.prefix}",
    )
    logger.info(
        "Stored document %s (%d bytes, %s) for %s",
        doc.id, doc.file_size, doc.storage_locator or "inline", principal.id,
    )
    return UploadResponse(document=_doc_to_created(doc))


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    subject: str | None = Query(None),
    q: str | None = Query(None),
    sort: str = Query("newest"),
    page: int = Query(1),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
):
    rows, total, page = document_service.list_documents(
        db, subject=subject, q=q, sort=sort, page=page, page_size=settings.page_size,
    )
    return DocumentListResponse(
        documents=[_doc_to_summary(d) for d in rows],
        total=total,
        page=page,
        page_size=settings.page_size,
    )


@router.get("/{document_id}")
async def get_document(
    document_id: str,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    sink: BlobSink = Depends(get_sink),
):
    doc = document_service.find_by_id(db, document_id)
    if doc is None:
        logger.info("Document %s not found", document_id)
        raise NotFound("Document not found", reason="record")

    if settings.retrieval_policy == "owner" and doc.owner_id != principal.id:
        raise Forbidden()

    try:
        chunks = document_service.open_payload(doc, sink)
    except NotFound:
        logger.warning(
            "Document %s exists but its bytes are missing (locator=%s)",
            doc.id, doc.storage_locator,
        )
        raise

    return StreamingResponse(
        chunks,
        media_type=doc.content_type,
        headers={
            "Content-Length": str(doc.file_size),
            "Content-Disposition": f'inline; filename="{quote(doc.file_name, safe="")}"',
        },
    )


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    principal: Principal = Depends(require_uploader),
    db: Session = Depends(get_db),
    sink: BlobSink = Depends(get_sink),
):
    doc = document_service.find_by_id(db, document_id)
    if doc is None:
        raise NotFound("Document not found", reason="record")
    if doc.owner_id != principal.id and principal.role != "superadmin":
        raise Forbidden()
    document_service.delete_document(db, sink, doc)
    logger.info("Deleted document %s", document_id)
    return {"ok": True}
