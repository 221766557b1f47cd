"""
Asset extractor that crops custom visuals out of the reference image.

Real pixels beat generated approximations: extracted entries override
generated assets of the same name when merged into the asset map.
"""

import asyncio
import base64
import io
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.exceptions import AssetExtractionError
from pixelsmith.schemas import DomNode, ExtractionBounds, FileInput
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "AssetExtractor")

WEBP_QUALITY = 90


class AssetExtractor(BaseStage):
    """Crops every `has_custom_visual` node of a DOM tree from its source image."""

    def __init__(self, image_format: str = "webp"):
        super().__init__(stage_name="AssetExtractor")
        self.image_format = image_format

    async def run(self, dom_tree: DomNode, image: FileInput, correlation_id: Optional[str] = None) -> Dict[str, str]:
        """
        Returns:
            Node id -> data URI, for every crop that succeeded
        """
        targets = collect_targets(dom_tree)
        if not targets:
            return {}

        logger.debug(f"Extracting {len(targets)} custom visuals", correlation_id=correlation_id)
        return await asyncio.to_thread(self._extract_all, image.data, targets, correlation_id)

    def _extract_all(
        self,
        data: bytes,
        targets: List[Tuple[str, ExtractionBounds]],
        correlation_id: Optional[str]
    ) -> Dict[str, str]:
        extracted = {}
        with Image.open(io.BytesIO(data)) as source:
            source.load()
            for asset_id, bounds in targets:
                try:
                    extracted[asset_id] = self.crop(source, bounds)
                except AssetExtractionError as e:
                    logger.warning(f"Failed to extract {asset_id}: {e}", correlation_id=correlation_id)
        return extracted

    def crop(self, source: Image.Image, bounds: ExtractionBounds) -> str:
        """Crop normalized (0-100) bounds, clamped to the image, and encode as a data URI."""
        box = pixel_box(bounds, source.width, source.height)

        region = source.crop(box)
        if self.image_format == "webp":
            if region.mode not in ("RGB", "RGBA"):
                region = region.convert("RGBA")
            mime_type, save_kwargs = "image/webp", {"format": "WEBP", "quality": WEBP_QUALITY}
        else:
            mime_type, save_kwargs = "image/png", {"format": "PNG"}

        buffer = io.BytesIO()
        region.save(buffer, **save_kwargs)
        return f"data:{mime_type};base64,{base64.b64encode(buffer.getvalue()).decode('ascii')}"

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        files = state["input"].files
        correlation_id = state.get("correlation_id")

        extracted: Dict[str, str] = {}
        for manifest in state.get("manifests", []):
            if manifest.dom_tree is None or manifest.file_index >= len(files):
                continue
            extracted.update(await self.run(manifest.dom_tree, files[manifest.file_index], correlation_id))

        if extracted:
            logger.info(f"Extracted {len(extracted)} custom visuals from reference", correlation_id=correlation_id)
        return {"assets": merge_assets(state.get("assets", {}), extracted)}


def collect_targets(node: DomNode) -> List[Tuple[str, ExtractionBounds]]:
    """Depth-first list of (node id, bounds) for nodes flagged for extraction."""
    return [
        (n.id, n.extraction_bounds)
        for n in node.walk()
        if n.has_custom_visual and n.extraction_bounds is not None and n.id
    ]


def pixel_box(bounds: ExtractionBounds, width: int, height: int) -> Tuple[int, int, int, int]:
    left = max(0, round(bounds.left / 100 * width))
    top = max(0, round(bounds.top / 100 * height))
    crop_width = min(round(bounds.width / 100 * width), width - left)
    crop_height = min(round(bounds.height / 100 * height), height - top)

    if crop_width <= 0 or crop_height <= 0:
        raise AssetExtractionError(f"Invalid crop dimensions: {crop_width}x{crop_height} at ({left},{top})")
    return left, top, left + crop_width, top + crop_height


def merge_assets(generated: Dict[str, str], extracted: Dict[str, str]) -> Dict[str, str]:
    """Extracted entries override generated ones by name."""
    return {**generated, **extracted}
