from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentCreated(_CamelModel):
    id: str
    title: str
    subject: str
    page_count: int | None
    pages: int | None
    file_url: str
    file_name: str


class DocumentSummary(_CamelModel):
    id: str
    title: str
    subject: str
    page_count: int | None
    pages: int | None
    file_url: str
    file_name: str
    file_size: int
    content_type: str
    owner_id: str
    created_at: str


class UploadResponse(_CamelModel):
    ok: bool = True
    document: DocumentCreated


class DocumentListResponse(_CamelModel):
    ok: bool = True
    documents: list[DocumentSummary]
    total: int
    page: int
    page_size: int
