"""
Architect stage that plans the component structure from visual manifests.
"""

from typing import Any, Dict, List, Optional

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.components.architect.prompt import ARCHITECT_SYSTEM_PROMPT, build_architect_prompt
from pixelsmith.config import config
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import ComponentStructure, ExecutionStrategy, VisualManifest
from pixelsmith.utils.decode import Malformed, decode_json, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Architect")


class Architect(BaseStage):
    """Architect stage: manifests + strategy + instructions -> ComponentStructure."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        super().__init__(stage_name="Architect")

        cfg = config.get_architect_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised Architect with model={self.model}", correlation_id="INIT")

    async def run(
        self,
        manifests: List[VisualManifest],
        strategy: ExecutionStrategy,
        instructions: str,
        correlation_id: Optional[str] = None
    ) -> ComponentStructure:
        """Plan the structure. Unparseable output returns an empty structure instead of raising."""
        raw_output = await self.llm_client.invoke(
            build_architect_prompt(manifests, strategy, instructions),
            system_prompt=ARCHITECT_SYSTEM_PROMPT,
            correlation_id=correlation_id
        )

        decoded = decode_json(raw_output)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Architect output unparseable ({decoded.reason}). Preview: {preview(decoded.raw)}",
                correlation_id=correlation_id
            )
            return ComponentStructure()

        tree = decoded.value.get("tree")
        layout_strategy = decoded.value.get("layout_strategy")
        layout_strategy = layout_strategy if isinstance(layout_strategy, str) and layout_strategy else "flex"

        if not isinstance(tree, list):
            logger.warning("Architect output has no tree list, returning empty structure", correlation_id=correlation_id)
            return ComponentStructure(layout_strategy=layout_strategy)

        structure = ComponentStructure(tree=[n for n in tree if isinstance(n, dict)], layout_strategy=layout_strategy)
        logger.info(
            f"Structure planned: {len(structure.tree)} root nodes, layout={structure.layout_strategy}",
            correlation_id=correlation_id
        )
        return structure

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        structure = await self.run(
            manifests=state.get("manifests", []),
            strategy=state["strategy"],
            instructions=state["input"].instructions,
            correlation_id=state.get("correlation_id")
        )
        return {"structure": structure}

    def _fallback(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {"structure": ComponentStructure()}
