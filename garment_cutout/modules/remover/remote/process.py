"""
Remote matting adapter: delegates background removal to a hosted service.

The response is already segmented, so the local segmenter and smoother are skipped.
There are no retries; callers decide what to do with a RemoteError.
"""
import asyncio
import base64
from io import BytesIO
from typing import Optional

import httpx
import structlog
from PIL import Image, UnidentifiedImageError

from garment_cutout.config import Settings
from garment_cutout.errors import ConfigError, MissingApiKeyError, RemoteError, RemoteTimeoutError
from garment_cutout.models import ProcessedImageAsset
from .config import PROVIDERS, settings as remote_settings

log = structlog.get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Best-effort human message from a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:500] or response.reason_phrase

    if isinstance(body, dict):
        # remove.bg: {"errors": [{"title": ..., "code": ...}]}
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0] if isinstance(errors[0], dict) else {}
            return str(first.get("title") or first.get("detail") or errors[0])
        # Hugging Face: {"error": "..."}
        if body.get("error"):
            return str(body["error"])
    return response.reason_phrase or "Unknown error"


class RemoteMattingClient:
    """
    Client for a remote matting service.

    The client owns its httpx session; construct one per application (or per test),
    pass it to the pipeline and close it on shutdown.
    """

    def __init__(
        self,
        api_key: Optional[str],
        provider: str = "removebg",
        endpoint: Optional[str] = None,
        timeout_s: float = 30.0,
        output_size: str = "auto",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if provider not in PROVIDERS:
            raise ConfigError(f"Unknown remote matting provider '{provider}', expected one of {PROVIDERS}")
        self.api_key = api_key
        self.provider = provider
        self.endpoint = endpoint
        self.timeout_s = timeout_s
        self.output_size = output_size
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout_s), transport=transport)

    @classmethod
    def from_settings(cls, app_settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        endpoint = (
            app_settings.REMOVEBG_URL if app_settings.REMOTE_PROVIDER == "removebg" else app_settings.HUGGINGFACE_URL
        )
        return cls(
            api_key=app_settings.REMOTE_API_KEY,
            provider=app_settings.REMOTE_PROVIDER,
            endpoint=endpoint,
            timeout_s=app_settings.REMOTE_TIMEOUT_S,
            output_size=app_settings.REMOTE_OUTPUT_SIZE,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def remove_background(self, image_bytes: bytes, content_type: str = "image/png",
                                size: Optional[str] = None) -> ProcessedImageAsset:
        """
        Send an encoded image to the matting service.

        Args:
            size: remove.bg output size for this call; defaults to the configured output_size

        Returns:
            ProcessedImageAsset built from the service's (already segmented) response

        Raises:
            MissingApiKeyError: Before any network call, if no key is configured
            RemoteTimeoutError: If the service does not answer within timeout_s
            RemoteError: On any non-2xx status or transport failure
        """
        if not self.api_key:
            raise MissingApiKeyError(self.provider)

        log.info("Remote: Sending request", provider=self.provider, size_bytes=len(image_bytes))
        try:
            if self.provider == "removebg":
                response = await self._post_removebg(image_bytes, content_type, size or self.output_size)
            else:
                response = await self._post_huggingface(image_bytes, content_type)
        except httpx.TimeoutException as e:
            log.warning("Remote: Request timed out", provider=self.provider, timeout_s=self.timeout_s)
            raise RemoteTimeoutError(self.timeout_s) from e
        except httpx.RequestError as e:
            log.warning("Remote: Network error", provider=self.provider, error=str(e))
            raise RemoteError(f"Network error talking to {self.provider}: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            log.warning("Remote: Service returned an error", provider=self.provider,
                        status_code=response.status_code, message=message)
            raise RemoteError(message, status_code=response.status_code)

        return await asyncio.to_thread(self._to_asset, response)

    async def _post_removebg(self, image_bytes: bytes, content_type: str, size: str) -> httpx.Response:
        return await self._client.post(
            self.endpoint or "https://api.remove.bg/v1.0/removebg",
            headers={"X-Api-Key": self.api_key},
            files={"image_file": (remote_settings.DEFAULT_FILENAME, image_bytes, content_type)},
            data={
                "size": size,
                "type": remote_settings.REMOVEBG_TYPE,
                "format": remote_settings.REMOVEBG_FORMAT,
            },
        )

    async def _post_huggingface(self, image_bytes: bytes, content_type: str) -> httpx.Response:
        if not self.endpoint:
            raise ConfigError("No Hugging Face model endpoint configured")
        return await self._client.post(
            self.endpoint,
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": content_type},
            content=image_bytes,
        )

    def _to_asset(self, response: httpx.Response) -> ProcessedImageAsset:
        content = response.content
        try:
            image = Image.open(BytesIO(content))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise RemoteError(f"{self.provider} returned data that is not an image", status_code=response.status_code) from e

        mime = Image.MIME.get(image.format or "", "image/png")
        width, height = image.size
        log.info("Remote: Received image", provider=self.provider, size=(width, height), mode=image.mode)
        return ProcessedImageAsset(
            encoded_bytes=content,
            display_ref=f"data:{mime};base64," + base64.b64encode(content).decode("ascii"),
            width=width,
            height=height,
            method="remote",
            has_transparency=image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info,
        )

    async def close(self):
        if not self._client.is_closed:
            await self._client.aclose()
            log.info("Remote matting client closed")
