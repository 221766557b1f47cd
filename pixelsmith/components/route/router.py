"""
Router stage that classifies intent and produces the execution strategy.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.components.route.prompt import ROUTER_SYSTEM_PROMPT, build_router_prompt
from pixelsmith.config import config
from pixelsmith.constants import (
    MODE_CREATE,
    MODE_EDIT,
    MODE_MERGE,
    MODE_RESEARCH_AND_BUILD,
)
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import AssetRequest, ExecutionPlan, ExecutionStrategy, FileInput
from pixelsmith.utils.decode import Malformed, decode_json, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Router")


class Router(BaseStage):
    """Router stage: decides the pipeline mode and which inputs each analysis step reads."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        super().__init__(stage_name="Router")

        cfg = config.get_router_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised Router with model={self.model}", correlation_id="INIT")

    async def run(
        self,
        files: List[FileInput],
        instructions: str,
        current_code: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> ExecutionStrategy:
        """Classify the request. Malformed model output yields the fallback strategy."""
        raw_output = await self.llm_client.invoke(
            build_router_prompt(instructions, files, bool(current_code)),
            system_prompt=ROUTER_SYSTEM_PROMPT,
            correlation_id=correlation_id
        )

        decoded = decode_json(raw_output)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Router output unparseable ({decoded.reason}), using fallback strategy. "
                f"Preview: {preview(decoded.raw)}",
                correlation_id=correlation_id
            )
            return fallback_strategy(files, current_code)

        strategy = normalize_strategy(decoded.value, files, current_code)
        plan = strategy.execution_plan
        logger.info(
            f"Routed -> mode={strategy.mode} measure={plan.measure_pixels} physics={plan.extract_physics} "
            f"assets={len(plan.generate_assets)} 3d={plan.enable_3d}",
            correlation_id=correlation_id
        )
        return strategy

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        pipeline_input = state["input"]
        strategy = await self.run(
            files=pipeline_input.files,
            instructions=pipeline_input.instructions,
            current_code=pipeline_input.current_code,
            correlation_id=state.get("correlation_id")
        )
        return {"strategy": strategy}

    def _fallback(self, state: Dict[str, Any]) -> Dict[str, Any]:
        pipeline_input = state["input"]
        return {"strategy": fallback_strategy(pipeline_input.files, pipeline_input.current_code)}


def fallback_strategy(files: List[FileInput], current_code: Optional[str]) -> ExecutionStrategy:
    """Deterministic strategy used when the model cannot be asked or understood."""
    return normalize_strategy({}, files, current_code)


def normalize_strategy(raw: Dict[str, Any], files: List[FileInput], current_code: Optional[str]) -> ExecutionStrategy:
    """
    Turn a raw router reply into a consistent strategy.

    - mode is EDIT iff existing code is present (MERGE survives only with code and new files)
    - out-of-range or wrong-kind indices are dropped
    - every image is measured and every video sent to physics extraction
    """
    has_code = bool(current_code)
    mode = _coerce_mode(raw.get("mode"), has_code, bool(files))

    plan_raw = raw.get("execution_plan")
    if not isinstance(plan_raw, dict):
        plan_raw = {}

    image_indices = [i for i, f in enumerate(files) if f.is_image]
    video_indices = [i for i, f in enumerate(files) if f.is_video]

    measure = set(_indices(plan_raw.get("measure_pixels"))) & set(image_indices)
    physics = set(_indices(plan_raw.get("extract_physics"))) & set(video_indices)

    plan = ExecutionPlan(
        measure_pixels=sorted(measure | set(image_indices)),
        extract_physics=sorted(physics | set(video_indices)),
        preserve_existing_code=bool(plan_raw.get("preserve_existing_code", False)),
        enable_3d=bool(plan_raw.get("enable_3d", False)),
        generate_assets=_asset_requests(plan_raw.get("generate_assets")),
    )

    base_source = raw.get("base_source")
    file_roles = raw.get("file_roles")
    return ExecutionStrategy(
        mode=mode,
        base_source=base_source if isinstance(base_source, str) else ("codebase" if has_code else None),
        file_roles=file_roles if isinstance(file_roles, list) else [],
        execution_plan=plan,
    )


def _coerce_mode(mode: Any, has_code: bool, has_files: bool) -> str:
    if mode == MODE_RESEARCH_AND_BUILD:
        return MODE_RESEARCH_AND_BUILD
    if mode == MODE_MERGE and has_code and has_files:
        return MODE_MERGE
    return MODE_EDIT if has_code else MODE_CREATE


def _indices(value: Any) -> List[int]:
    if not isinstance(value, list):
        return []
    indices = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            indices.append(item)
        elif isinstance(item, str) and item.strip().isdigit():
            indices.append(int(item.strip()))
    return indices


def _asset_requests(value: Any) -> List[AssetRequest]:
    if not isinstance(value, list):
        return []
    requests = []
    for item in value:
        if not isinstance(item, dict):
            continue
        try:
            requests.append(AssetRequest.model_validate(item))
        except ValidationError:
            continue
    return requests
