from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from dugsi.config import settings
from dugsi.database import get_db
from dugsi.dependencies import get_session_resolver, require_principal
from dugsi.errors import Unauthorized
from dugsi.schemas.auth import LoginRequest, LoginResponse, MeResponse, RegisterRequest, UserResponse
from dugsi.services import auth_service
from dugsi.services.session_service import JWTSessionResolver, Principal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
    auth_service.register(db, req)
    return {"ok": True}


@router.post("/login", response_model=LoginResponse)
async def login(
    req: LoginRequest,
    db: Session = Depends(get_db),
    resolver: JWTSessionResolver = Depends(get_session_resolver),
):
    user = auth_service.authenticate(db, req.email, req.password)
    ttl = settings.remember_ttl_seconds if req.remember else settings.session_ttl_seconds
    token = resolver.issue_token(Principal(id=user.id, role=user.role), ttl)

    response = JSONResponse(LoginResponse(token=token, expires_in_seconds=ttl).model_dump())
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=ttl,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    return response


@router.post("/logout")
async def logout():
    response = JSONResponse({"ok": True})
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/me", response_model=MeResponse)
async def me(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    user = auth_service.get_user(db, principal.id)
    if user is None:
        # Token is valid but the account is gone.
        raise Unauthorized()
    return MeResponse(user=UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
        role=user.role,
        created_at=user.created_at,
    ))
