import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dugsi.database import get_db
from dugsi.dependencies import require_uploader
from dugsi.errors import Conflict, NotFound
from dugsi.models.subject import Subject
from dugsi.schemas.subject import SubjectResponse, SubjectUpdate, SubjectUpsert
from dugsi.utils.clock import utc_timestamp

router = APIRouter(prefix="/subjects", tags=["subjects"])


def _subject_to_response(s: Subject) -> SubjectResponse:
    return SubjectResponse(id=s.id, name=s.name, slug=s.slug, desc=s.desc, created_at=s.created_at)


def _commit_or_conflict(db: Session):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("A subject with this slug already exists") from e


@router.get("", response_model=list[SubjectResponse])
async def list_subjects(db: Session = Depends(get_db)):
    rows = db.query(Subject).order_by(Subject.name.asc()).all()
    return [_subject_to_response(s) for s in rows]


@router.post("", response_model=SubjectResponse, status_code=201,
             dependencies=[Depends(require_uploader)])
async def create_subject(req: SubjectUpsert, db: Session = Depends(get_db)):
    subject = Subject(
        id=str(uuid.uuid4()),
        name=req.name,
        slug=req.slug,
        desc=req.desc or None,
        created_at=utc_timestamp(),
    )
    db.add(subject)
    _commit_or_conflict(db)
    db.refresh(subject)
    return _subject_to_response(subject)


@router.patch("/{subject_id}", response_model=SubjectResponse,
              dependencies=[Depends(require_uploader)])
async def update_subject(subject_id: str, req: SubjectUpdate, db: Session = Depends(get_db)):
    subject = db.get(Subject, subject_id)
    if not subject:
        raise NotFound("Subject not found")
    for field, value in req.model_dump(exclude_unset=True).items():
        if value is None and field != "desc":
            continue
        setattr(subject, field, value)
    _commit_or_conflict(db)
    db.refresh(subject)
    return _subject_to_response(subject)


@router.delete("/{subject_id}", dependencies=[Depends(require_uploader)])
async def delete_subject(subject_id: str, db: Session = Depends(get_db)):
    subject = db.get(Subject, subject_id)
    if not subject:
        raise NotFound("Subject not found")
    db.delete(subject)
    db.commit()
    return {"ok": True}
