from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import datetime, timezone


class BlobSink(ABC):
    """Where uploaded bytes physically live.

    Implementations:
    - LocalBlobSink: a directory on local disk (development/offline)
    - S3BlobSink: an S3-compatible bucket (production)
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    @abstractmethod
    def put(self, locator: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``locator`` and return a URL for it.

        All-or-nothing: either the whole object is readable at ``locator``
        afterwards, or StorageWriteError/StorageUnavailableError is raised and
        nothing is.
        """
        ...

    @abstractmethod
    def get(self, locator: str) -> bytes:
        """Return the bytes under ``locator``. Raises BlobMissingError if gone."""
        ...

    def open_stream(self, locator: str, chunk_size: int = 256 * 1024) -> Iterator[bytes]:
        """Return an iterator over the object's bytes.

        Missing objects raise BlobMissingError here, before the first chunk is
        consumed. The default reads the whole object; backends override it to
        keep memory flat.
        """
        return iter([self.get(locator)])

    @abstractmethod
    def delete(self, locator: str) -> None:
        """Remove the object. Deleting a missing object is not an error."""
        ...


def make_locator(category: str, file_name: str, unique: str,
                 now: datetime | None = None) -> str:
    """Build ``{category}/{epoch_millis}-{unique}-{file_name}``.

    ``unique`` keeps two same-named uploads in the same millisecond apart;
    callers pass the id of the document the bytes belong to. ``file_name``
    must already be sanitized.
    """
    now = now or datetime.now(timezone.utc)
    return f"{category}/{int(now.timestamp() * 1000)}-{unique}-{file_name}"
