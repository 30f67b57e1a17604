from collections.abc import Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from dugsi.errors import BlobMissingError, StorageUnavailableError, StorageWriteError
from dugsi.storage.base import BlobSink

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3BlobSink(BlobSink):
    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        client=None,
    ):
        if not bucket:
            raise StorageUnavailableError("S3 bucket name is not configured")
        self._bucket = bucket
        self._region = region
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        # Credentials come from the standard AWS environment/config chain.
        self._client = client or boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    @property
    def backend_name(self) -> str:
        return "s3"

    def url_for(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def put(self, locator: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=locator,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageWriteError(f"S3 upload failed: {e}", locator=locator, cause=e) from e
        return self.url_for(locator)

    def _get_object(self, locator: str) -> dict:
        try:
            return self._client.get_object(Bucket=self._bucket, Key=locator)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_CODES:
                raise BlobMissingError("Object missing from bucket", locator=locator, cause=e) from e
            raise StorageUnavailableError(f"S3 read failed: {e}", locator=locator, cause=e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 read failed: {e}", locator=locator, cause=e) from e

    def get(self, locator: str) -> bytes:
        body = self._get_object(locator)["Body"]
        try:
            return body.read()
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"S3 read failed: {e}", locator=locator, cause=e) from e

    def open_stream(self, locator: str, chunk_size: int = 256 * 1024) -> Iterator[bytes]:
        return self._get_object(locator)["Body"].iter_chunks(chunk_size)

    def delete(self, locator: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=locator)
        except (BotoCoreError, ClientError) as e:
            raise StorageWriteError(f"S3 delete failed: {e}", locator=locator, cause=e) from e
