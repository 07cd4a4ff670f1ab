"""LINE Messaging API client: webhook signatures, replies and message content."""

import base64
import hashlib
import hmac
import logging

import httpx

from app.config import get_settings
from app.services.errors import ImageProcessingError

logger = logging.getLogger(__name__)
settings = get_settings()


def compute_signature(channel_secret: str, body: bytes) -> str:
    """base64(HMAC-SHA256(channel_secret, body)), the X-Line-Signature value."""
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


class LineClient:
    """Thin async wrapper over the LINE endpoints the capture flow needs."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        channel_secret: str | None = None,
        channel_access_token: str | None = None,
        api_base: str | None = None,
        data_api_base: str | None = None,
    ):
        self.http_client = http_client
        self.channel_secret = channel_secret or settings.line_channel_secret
        self.channel_access_token = channel_access_token or settings.line_channel_access_token
        self.api_base = (api_base or settings.line_api_base).rstrip("/")
        self.data_api_base = (data_api_base or settings.line_data_api_base).rstrip("/")

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.channel_access_token}"}

    def verify_signature(self, body: bytes, signature: str | None) -> bool:
        """Constant-time check of a webhook body against its signature header."""
        if not signature:
            return False
        expected = compute_signature(self.channel_secret, body)
        return hmac.compare_digest(expected, signature)

    async def reply_text(self, reply_token: str, text: str) -> None:
        """
        Send a single text reply.

        Failures are logged and swallowed.
        """
        try:
            response = await self.http_client.post(
                f"{self.api_base}/v2/bot/message/reply",
                headers=self._auth_headers,
                json={
                    "replyToken": reply_token,
                    "messages": [{"type": "text", "text": text}],
                },
            )
            if not response.is_success:
                logger.warning("LINE reply rejected: %d", response.status_code)
        except Exception:
            logger.exception("Failed to send LINE reply")

    def _content_url(self, message_id: str) -> str:
        return f"{self.data_api_base}/v2/bot/message/{message_id}/content"

    async def get_content_type(self, message_id: str) -> str:
        """MIME type of a message's binary content, ``image/jpeg`` when not reported."""
        response = await self.http_client.head(
            self._content_url(message_id), headers=self._auth_headers
        )
        content_type = response.headers.get("content-type")
        if not content_type:
            return "image/jpeg"
        # Drop parameters such as "; charset=..."
        return content_type.split(";")[0].strip()

    async def download_content(self, message_id: str) -> bytes:
        """Download a message's binary content."""
        response = await self.http_client.get(
            self._content_url(message_id), headers=self._auth_headers
        )
        if not response.is_success:
            raise ImageProcessingError(
                f"Failed to download image: {response.status_code} {response.reason_phrase}"
            )
        return response.content
