import logging
import os
import re
import uuid
from collections.abc import Iterator
from pathlib import Path

from dugsi.errors import BlobMissingError, StorageUnavailableError, StorageWriteError
from dugsi.storage.base import BlobSink

logger = logging.getLogger(__name__)

_SAFE_LOCATOR = re.compile(r"^[A-Za-z0-9._\-/]+$")


def is_unsafe_locator(locator: str) -> bool:
    if not locator or "\x00" in locator or "\\" in locator:
        return True
    if locator.startswith(("/", "~")) or (len(locator) >= 2 and locator[1] == ":"):
        return True
    if any(part in ("", ".", "..") for part in locator.split("/")):
        return True
    return not _SAFE_LOCATOR.match(locator)


class LocalBlobSink(BlobSink):
    """Stores objects as files under ``root``.

    Files are written to a temporary name and renamed into place, so a
    locator never points at a half-written object. Intended for development
    and offline use only: files on a serverless or container filesystem do
    not survive a redeploy.
    """

    def __init__(self, root: Path, url_prefix: str = "/uploads"):
        self._root = Path(root)
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def backend_name(self) -> str:
        return "local"

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, locator: str) -> Path:
        if is_unsafe_locator(locator):
            raise StorageWriteError("Invalid storage locator", locator=locator)
        root = self._root.resolve()
        path = (root / locator).resolve()
        try:
            path.relative_to(root)
        except ValueError as e:
            raise StorageWriteError("Locator resolves outside storage root", locator=locator) from e
        return path

    def _ensure_root(self):
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Upload directory {self._root} is not writable", cause=e
            ) from e
        if not os.access(self._root, os.W_OK):
            raise StorageUnavailableError(f"Upload directory {self._root} is not writable")

    def put(self, locator: str, data: bytes, content_type: str) -> str:
        self._ensure_root()
        path = self._path_for(locator)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageWriteError("Could not write upload to disk", locator=locator, cause=e) from e
        logger.debug("Stored %d bytes at %s", len(data), path)
        return f"{self._url_prefix}/{locator}"

    def get(self, locator: str) -> bytes:
        try:
            path = self._path_for(locator)
        except StorageWriteError as e:
            raise BlobMissingError("Invalid storage locator", locator=locator) from e
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise BlobMissingError("Stored file is missing", locator=locator, cause=e) from e

    def open_stream(self, locator: str, chunk_size: int = 256 * 1024) -> Iterator[bytes]:
        try:
            path = self._path_for(locator)
        except StorageWriteError as e:
            raise BlobMissingError("Invalid storage locator", locator=locator) from e
        try:
            fh = path.open("rb")
        except FileNotFoundError as e:
            raise BlobMissingError("Stored file is missing", locator=locator, cause=e) from e
        return _iter_file(fh, chunk_size)

    def delete(self, locator: str) -> None:
        path = self._path_for(locator)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageWriteError("Could not delete stored file", locator=locator, cause=e) from e


def _iter_file(fh, chunk_size: int) -> Iterator[bytes]:
    with fh:
        while chunk := fh.read(chunk_size):
            yield chunk
