from pydantic import BaseModel, Field, field_validator


class SubjectUpsert(BaseModel):
    name: str = Field(min_length=2, max_length=60)
    slug: str = Field(min_length=2, max_length=80, pattern=r"^[a-z0-9-]+$")
    desc: str | None = Field(None, max_length=300)

    # Runs before the length checks, so "  " counts as empty.
    @field_validator("name", "slug", "desc", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class SubjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=60)
    slug: str | None = Field(None, min_length=2, max_length=80, pattern=r"^[a-z0-9-]+$")
    desc: str | None = Field(None, max_length=300)

    @field_validator("name", "slug", "desc", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class SubjectResponse(BaseModel):
    id: str
    name: str
    slug: str
    desc: str | None
    created_at: str
