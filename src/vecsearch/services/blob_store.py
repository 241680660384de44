"""S3-compatible object storage used to archive raw uploads."""

from typing import Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from vecsearch.config import Settings
from vecsearch.core.logging import get_logger

logger = get_logger(__name__)


class BlobStore:
    """Async S3 client wrapper."""

    def __init__(self, settings: Settings):
        """Initialize the blob store.

        Args:
            settings: Application settings.
        """
        self.settings = settings
        self.bucket = settings.file_bucket
        self.session = aioboto3.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.bucket)

    async def put(
        self,
        object_name: str,
        data: bytes,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        """Store an object in the configured bucket.

        Failures are logged and swallowed: archiving never blocks indexing.

        Args:
            object_name: Key of the object inside the bucket.
            data: Object body.
            content_type: MIME type stored with the object.
            metadata: Extra user metadata.

        Returns:
            str | None: The object's ETag, or None if not stored.
        """
        if not self.bucket:
            logger.debug("No file bucket configured, skipping archive of %s", object_name)
            return None

        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type
        if metadata:
            extra["Metadata"] = metadata

        try:
            async with self.session.client(  # type: ignore
                "s3", endpoint_url=self.settings.s3_endpoint_url
            ) as s3:
                response = await s3.put_object(
                    Bucket=self.bucket,
                    Key=object_name,
                    Body=data,
                    **extra,
                )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to archive {object_name} to bucket {self.bucket}: {e}")
            return None

        etag = str(response.get("ETag", "")).strip('"') or None
        logger.info(f"File uploaded successfully: {self.bucket}/{object_name} (etag={etag})")
        return etag
