"""
Client for the external rendering/screenshot service used by the healing loop.
"""

import base64
import binascii
from typing import Dict, List, Optional

import httpx

from pixelsmith.config import config
from pixelsmith.exceptions import RenderError
from pixelsmith.schemas import AppFile, FileInput
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Renderer")


class Renderer:
    """Renders a file set to a PNG screenshot through the screenshot service."""

    def __init__(
        self,
        url: str = None,
        viewport: Dict[str, int] = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        cfg = config.get_screenshot_config()
        self.url = url or cfg["url"]
        self.viewport = viewport or cfg["viewport"]
        self.timeout = timeout or cfg["timeout"]
        self.transport = transport

    async def render(self, files: List[AppFile], correlation_id: Optional[str] = None) -> FileInput:
        """
        Returns:
            The rendered screenshot as an image input

        Raises:
            RenderError: Service unreachable, non-2xx response or no image in the reply
        """
        if not files:
            raise RenderError("nothing to render")

        payload = {
            "files": [f.model_dump() for f in files],
            "viewport": self.viewport,
        }
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
                resp = await client.post(self.url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise RenderError(f"screenshot service failed: {e}") from e

        data = _screenshot_bytes(resp)
        logger.debug(f"Rendered {len(files)} files -> {len(data)} bytes", correlation_id=correlation_id)
        return FileInput(data=data, mime_type="image/png", filename="render.png")


def _screenshot_bytes(resp: httpx.Response) -> bytes:
    """Accept either a raw image body or JSON carrying a base64 image / data URI."""
    if resp.headers.get("content-type", "").startswith("image/"):
        if not resp.content:
            raise RenderError("screenshot service returned an empty image")
        return resp.content

    try:
        body = resp.json()
    except ValueError as e:
        raise RenderError("screenshot service returned neither an image nor JSON") from e

    encoded = None
    if isinstance(body, dict):
        encoded = body.get("image") or body.get("screenshot")
    if not isinstance(encoded, str) or not encoded:
        raise RenderError("screenshot service reply has no image")

    if encoded.startswith("data:"):
        encoded = encoded.split(",", 1)[-1]
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise RenderError("screenshot image is not valid base64") from e
