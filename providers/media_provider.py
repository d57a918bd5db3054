"""
Media Host Provider Classes

Uploads blog images to the third-party media host and removes them again when
a post drops them. Only Cloudinary's signed REST API is implemented.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

import aiohttp
import cloudinary.utils

from core.exceptions import UpstreamError, ValidationError
from core.logging_config import get_logger

logger = get_logger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"

# Transport failures, timeouts and bodies that are not JSON
HOST_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)


@dataclass
class MediaFile:
    """A file received from a client, ready to be forwarded"""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def _json_object(body) -> Dict:
    return body if isinstance(body, dict) else {}


def public_id_from_url(url: str) -> Optional[str]:
    """Last path segment of a hosted URL, without its extension"""
    segment = url.rstrip("/").rsplit("/", 1)[-1]
    public_id = segment.split(".")[0]
    return public_id or None


class MediaProvider(ABC):
    """Abstract base class for media hosts"""

    @abstractmethod
    async def upload(self, files: List[MediaFile], folder: str) -> List[str]:
        """Upload files and return their public URLs, in order"""
        pass

    @abstractmethod
    async def destroy(self, url: str, folder: str) -> bool:
        """Remove a previously uploaded file. Returns True if removed."""
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        pass


class CloudinaryMediaProvider(MediaProvider):
    """Cloudinary upload API client using aiohttp"""

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        timeout_seconds: int = 30,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def source_name(self) -> str:
        return "cloudinary"

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: Dict[str, str]) -> str:
        """Request signature as computed by the Cloudinary SDK"""
        return cloudinary.utils.api_sign_request(params, self.api_secret)

    def _signed_form(self, params: Dict[str, str]) -> aiohttp.FormData:
        form = aiohttp.FormData()
        for key, value in params.items():
            form.add_field(key, value)
        form.add_field("api_key", self.api_key)
        form.add_field("signature", self.sign(params))
        return form

    async def upload(self, files: List[MediaFile], folder: str) -> List[str]:
        if not files:
            raise ValidationError("file", "", "At least one file is required")
        if not self.is_configured:
            raise UpstreamError(self.source_name, "Media host credentials are not set")

        url = f"{CLOUDINARY_API_BASE}/{self.cloud_name}/image/upload"
        uploaded_urls = []

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                for media in files:
                    logger.info(
                        f"Uploading {media.filename} ({len(media.content)} bytes) to {folder}"
                    )
                    form = self._signed_form(
                        {"folder": folder, "timestamp": str(int(time.time()))}
                    )
                    form.add_field(
                        "file",
                        media.content,
                        filename=media.filename,
                        content_type=media.content_type,
                    )

                    async with session.post(url, data=form) as response:
                        body = _json_object(await response.json(content_type=None))
                        if response.status != 200 or "secure_url" not in body:
                            error = body.get("error")
                            message = error.get("message") if isinstance(error, dict) else error
                            raise UpstreamError(
                                self.source_name,
                                f"Upload of {media.filename} failed with {response.status}: {message}",
                            )
                        uploaded_urls.append(body["secure_url"])

        except HOST_ERRORS as e:
            logger.error(f"Media host request failed: {type(e).__name__}: {e}")
            raise UpstreamError(self.source_name, f"{type(e).__name__}: {e}") from e

        return uploaded_urls

    async def destroy(self, url: str, folder: str) -> bool:
        public_id = public_id_from_url(url)
        if not public_id or not self.is_configured:
            return False

        endpoint = f"{CLOUDINARY_API_BASE}/{self.cloud_name}/image/destroy"
        form = self._signed_form(
            {"public_id": f"{folder}/{public_id}", "timestamp": str(int(time.time()))}
        )

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(endpoint, data=form) as response:
                    body = _json_object(await response.json(content_type=None))
                    removed = response.status == 200 and body.get("result") == "ok"
        except HOST_ERRORS as e:
            logger.warning(
                f"Could not remove {public_id} from media host: {type(e).__name__}: {e}"
            )
            return False

        if not removed:
            logger.warning(f"Media host did not remove {public_id}")
        return removed
