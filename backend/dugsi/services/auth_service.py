import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dugsi.errors import Conflict, PersistenceError, Unauthorized
from dugsi.models.user import User
from dugsi.schemas.auth import RegisterRequest
from dugsi.utils.clock import utc_timestamp
from dugsi.utils.security import hash_password, verify_password


def register(db: Session, req: RegisterRequest) -> User:
    """Create the single superadmin account. Later registrations are refused."""
    if db.query(func.count(User.id)).scalar() > 0:
        raise Conflict("Registration is locked: a super admin already exists.")

    email = req.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already in use.")

    now = utc_timestamp()
    user = User(
        id=str(uuid.uuid4()),
        first_name=req.first_name,
        last_name=req.last_name,
        email=email,
        phone=req.phone or None,
        password_hash=hash_password(req.password),
        role="superadmin",
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Email already in use.") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(cause=e) from e
    db.refresh(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    # Same message for unknown email and wrong password.
    if not user or not verify_password(user.password_hash, password):
        raise Unauthorized("Invalid credentials")
    return user


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)
