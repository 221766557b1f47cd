"""
Photographer stage that synthesizes texture and background assets.
"""

from typing import Any, Dict, List, Optional

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.components.photograph.prompt import PHOTOGRAPHER_PROMPT
from pixelsmith.config import config
from pixelsmith.constants import STAGE_PHOTOGRAPHER, UNSUPPORTED_ASSET_TYPES
from pixelsmith.exceptions import PhotographerError
from pixelsmith.llm.image_client import ImageClient
from pixelsmith.schemas import AssetRequest
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Photographer")


class Photographer(BaseStage):
    """Photographer stage: asset name -> generated image URL."""

    def __init__(self, model: str = None, size: str = None):
        super().__init__(stage_name=STAGE_PHOTOGRAPHER)

        cfg = config.get_image_config()
        self.model = model or cfg["model"]
        self.size = size or cfg["size"]

        self.image_client = ImageClient(model=self.model, size=self.size)

        logger.debug(f"Initialised Photographer with model={self.model}", correlation_id="INIT")

    async def run(self, assets: List[AssetRequest], correlation_id: Optional[str] = None) -> Dict[str, str]:
        """
        Generate every supported asset, one at a time.

        Environment maps (hdri/environment) are skipped: the builder uses preset environments instead.
        A single failed asset is logged and skipped; PhotographerError is raised only when all fail.
        """
        supported = [a for a in assets if (a.type or "").lower() not in UNSUPPORTED_ASSET_TYPES]
        skipped = len(assets) - len(supported)
        if skipped:
            logger.info(f"Skipping {skipped} environment asset(s)", correlation_id=correlation_id)

        generated: Dict[str, str] = {}
        errors = []
        for asset in supported:
            prompt = PHOTOGRAPHER_PROMPT.format(
                vibe=asset.vibe or "photorealistic",
                name=asset.name,
                description=asset.description or asset.name,
            )
            try:
                generated[asset.name] = await self.image_client.generate(prompt, correlation_id=correlation_id)
            except Exception as e:
                errors.append(f"{asset.name}: {e}")
                logger.warning(f"Asset generation failed for {asset.name}: {e}", correlation_id=correlation_id)

        if supported and not generated:
            raise PhotographerError(f"all {len(supported)} asset generations failed ({'; '.join(errors)})")

        logger.info(f"Generated {len(generated)}/{len(supported)} assets", correlation_id=correlation_id)
        return generated

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        assets = await self.run(
            state["strategy"].execution_plan.generate_assets,
            correlation_id=state.get("correlation_id")
        )
        return {"assets": assets}
