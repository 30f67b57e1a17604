from fastapi import Depends, Request

from dugsi.errors import Forbidden, Unauthorized
from dugsi.services.session_service import (
    JWTSessionResolver,
    Principal,
    SessionResolver,
    build_session_resolver,
)
from dugsi.storage.base import BlobSink
from dugsi.storage.factory import get_blob_sink


def get_session_resolver() -> JWTSessionResolver:
    return build_session_resolver()


def require_principal(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Principal:
    principal = resolver.resolve(request)
    if principal is None:
        raise Unauthorized()
    return principal


def require_uploader(principal: Principal = Depends(require_principal)) -> Principal:
    if not principal.can_upload:
        raise Forbidden("Uploading documents requires an admin account")
    return principal


def get_sink() -> BlobSink:
    return get_blob_sink()
