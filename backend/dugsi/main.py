import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dugsi.config import settings
from dugsi.database import init_db
from dugsi.errors import DugsiError
from dugsi.routers import auth, documents, subjects

logger = logging.getLogger("dugsi")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except Exception as exc:
        logger.error("Could not initialise database: %s", exc)
        raise
    yield


app = FastAPI(
    title="Dugsi Hub",
    description="Past-exam document service for Grade 12 exam preparation",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    # Session cookie has to travel with cross-origin requests from the web app.
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


@app.exception_handler(DugsiError)
async def handle_dugsi_error(request: Request, exc: DugsiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message,
                     exc_info=exc)
        return _error(exc.status_code, exc.message if settings.debug else "Server error")
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid input")
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    field = ".".join(loc)
    message = first.get("msg", "Invalid input")
    return _error(400, f"{field}: {message}" if field else message)


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, str(exc) if settings.debug else "Server error")


app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(documents.router, prefix=settings.api_prefix)
app.include_router(subjects.router, prefix=settings.api_prefix)

if not settings.s3_bucket and not settings.inline_payloads:
    # Development only: local uploads are served as-is, like a public bucket.
    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}


def run():
    import uvicorn

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("dugsi.main:app", host=settings.host, port=settings.port)
