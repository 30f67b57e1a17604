import logging
from functools import lru_cache

from dugsi.config import settings
from dugsi.storage.base import BlobSink
from dugsi.storage.local import LocalBlobSink

logger = logging.getLogger(__name__)


def build_blob_sink() -> BlobSink:
    if settings.s3_bucket:
        from dugsi.storage.s3 import S3BlobSink

        logger.info("Using S3 blob sink (bucket=%s)", settings.s3_bucket)
        return S3BlobSink(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
    logger.warning(
        "No S3 bucket configured; storing uploads on local disk at %s (not durable)",
        settings.uploads_dir,
    )
    return LocalBlobSink(settings.uploads_dir, settings.uploads_url_prefix)


@lru_cache
def get_blob_sink() -> BlobSink:
    return build_blob_sink()
