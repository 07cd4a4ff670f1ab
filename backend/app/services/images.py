"""Image storage: copies LINE image content into the public image bucket."""

import asyncio
import logging
import time
from urllib.parse import unquote, urlsplit

import boto3
from botocore.exceptions import ClientError

from app.config import get_settings
from app.schemas.brain import ImageUploadResult
from app.services.errors import ImageProcessingError, InvalidImageUrlError
from app.services.line import LineClient

logger = logging.getLogger(__name__)
settings = get_settings()

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def generate_file_name(message_id: str, content_type: str, timestamp_ms: int | None = None) -> str:
    """``{message_id}-{epoch millis}.{ext}``; unknown types get ``jpg``."""
    ext = IMAGE_EXTENSIONS.get(content_type, "jpg")
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{message_id}-{timestamp_ms}.{ext}"


class ImageStorage:
    """Service for the S3-compatible bucket that holds brain images."""

    def __init__(
        self,
        s3_client=None,
        *,
        bucket: str | None = None,
        public_base_url: str | None = None,
    ):
        """Use the given client, or build one from settings."""
        if s3_client is None:
            client_kwargs = {
                "aws_access_key_id": settings.storage_access_key_id,
                "aws_secret_access_key": settings.storage_secret_access_key,
                "region_name": settings.storage_region,
            }
            # Supabase Storage exposes an S3 endpoint per project
            if settings.storage_endpoint_url:
                client_kwargs["endpoint_url"] = settings.storage_endpoint_url
            s3_client = boto3.client("s3", **client_kwargs)

        self.s3_client = s3_client
        self.bucket = bucket or settings.storage_bucket
        self.public_base_url = (public_base_url or settings.storage_public_base_url).rstrip("/")

    def public_url(self, file_key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{file_key}"

    def key_from_public_url(self, image_url: str) -> str:
        """
        Recover the object key from a public URL.

        Raises:
            InvalidImageUrlError: If the path is not ``.../public/<bucket>/<key>``
        """
        marker = f"/public/{self.bucket}/"
        path = urlsplit(image_url).path
        index = path.find(marker)
        key = path[index + len(marker):] if index != -1 else ""
        if not key:
            raise InvalidImageUrlError("Invalid image URL")
        return unquote(key)

    async def upload_image(self, file_key: str, data: bytes, content_type: str) -> None:
        """
        Upload bytes under ``file_key``. Never overwrites an existing object.

        Raises:
            ImageProcessingError: If storage rejects the upload
        """
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=self.bucket,
                Key=file_key,
                Body=data,
                ContentType=content_type,
                IfNoneMatch="*",
            )
        except ClientError as e:
            raise ImageProcessingError(f"Failed to upload image: {str(e)}") from e

    async def delete_image(self, image_url: str) -> None:
        """
        Delete the object behind a public image URL.

        Raises:
            InvalidImageUrlError: If the URL does not point into the bucket
            ImageProcessingError: If storage rejects the delete
        """
        file_key = self.key_from_public_url(image_url)
        try:
            await asyncio.to_thread(
                self.s3_client.delete_object, Bucket=self.bucket, Key=file_key
            )
        except ClientError as e:
            raise ImageProcessingError(f"Failed to delete image: {str(e)}") from e


async def process_line_image(
    user_id: str,
    message_id: str,
    line_client: LineClient,
    storage: ImageStorage,
) -> ImageUploadResult:
    """
    Copy a LINE image message into storage under ``{user_id}/``.

    Steps run in order: content type lookup, download, upload. Any failure
    aborts the whole operation with an ImageProcessingError.
    """
    try:
        content_type = await line_client.get_content_type(message_id)
        image_bytes = await line_client.download_content(message_id)
    except ImageProcessingError:
        raise
    except Exception as e:
        raise ImageProcessingError(f"Failed to download image: {str(e)}") from e

    file_key = f"{user_id}/{generate_file_name(message_id, content_type)}"
    await storage.upload_image(file_key, image_bytes, content_type)

    logger.info("Stored image for message %s (%d bytes)", message_id, len(image_bytes))
    return ImageUploadResult(image_url=storage.public_url(file_key), size=len(image_bytes))
