import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import jwt
from fastapi import Request

from dugsi.config import settings
from dugsi.errors import DugsiError

UPLOADER_ROLES = {"superadmin", "admin"}
MIN_SECRET_LENGTH = 32


@dataclass(frozen=True)
class Principal:
    id: str
    role: str

    @property
    def can_upload(self) -> bool:
        return self.role in UPLOADER_ROLES


class SessionResolver(ABC):
    """Turns a request into the principal making it, or None."""

    @abstractmethod
    def resolve(self, request: Request) -> Principal | None:
        ...


class JWTSessionResolver(SessionResolver):
    """HS256-signed session tokens carried in a cookie or a Bearer header."""

    algorithm = "HS256"

    def __init__(self, secret: str | None, cookie_name: str = "session"):
        self._secret = secret
        self._cookie_name = cookie_name

    def _key(self) -> str:
        if not self._secret or len(self._secret.strip()) < MIN_SECRET_LENGTH:
            raise DugsiError(
                f"DUGSI_AUTH_SECRET is missing or shorter than {MIN_SECRET_LENGTH} characters"
            )
        return self._secret

    def issue_token(self, principal: Principal, ttl_seconds: int) -> str:
        now = int(time.time())
        claims = {"uid": principal.id, "role": principal.role, "iat": now, "exp": now + ttl_seconds}
        return jwt.encode(claims, self._key(), algorithm=self.algorithm)

    def decode(self, token: str) -> Principal | None:
        key = self._key()
        try:
            claims = jwt.decode(token, key, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            return None
        uid = claims.get("uid")
        role = claims.get("role")
        if not uid or not isinstance(uid, str) or not isinstance(role, str):
            return None
        return Principal(id=uid, role=role)

    def _token_from(self, request: Request) -> str | None:
        authorization = request.headers.get("authorization", "")
        if authorization.startswith("Bearer "):
            return authorization[7:].strip() or None
        return request.cookies.get(self._cookie_name)

    def resolve(self, request: Request) -> Principal | None:
        token = self._token_from(request)
        if not token:
            return None
        return self.decode(token)


def build_session_resolver() -> JWTSessionResolver:
    return JWTSessionResolver(settings.auth_secret, settings.session_cookie_name)
