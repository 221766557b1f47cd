"""
Workflow Node Implementations
"""

import time
from typing import Any, Dict, List, Literal

from pixelsmith.components.architect.architect import Architect
from pixelsmith.components.build.builder import Builder
from pixelsmith.components.extract.asset_extractor import AssetExtractor
from pixelsmith.components.photograph.photographer import Photographer
from pixelsmith.components.physics.physicist import Physicist
from pixelsmith.components.route.router import Router
from pixelsmith.components.survey.surveyor import Surveyor
from pixelsmith.constants import (
    MODE_RESEARCH_AND_BUILD,
    STAGE_PHOTOGRAPHER,
    STAGE_PHYSICIST,
    STAGE_SURVEYOR,
    STEP_ARCHITECT,
    STEP_AUTONOMY,
    STEP_BUILDER,
    STEP_EXTRACTION,
    STEP_HEALING,
    STEP_PARALLEL,
    STEP_ROUTER,
    UNSUPPORTED_ASSET_TYPES,
)
from pixelsmith.exceptions import PipelineTimeoutError
from pixelsmith.healing.vision_loop import VisionLoop
from pixelsmith.orchestrator.autonomy_output import parse_autonomy_output
from pixelsmith.orchestrator.state import PipelineState
from pixelsmith.schemas import AppFile
from pixelsmith.swarm.autonomy import AutonomyCore
from pixelsmith.swarm.schemas import AgentTaskResult, AutonomyGoal
from pixelsmith.utils.concurrency import join_all
from pixelsmith.utils.correlation import generate_prefixed_id
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "PipelineNodes")


def check_budget(state: PipelineState, step: str) -> None:
    """
    Raises:
        PipelineTimeoutError: When the run has used up its wall-clock budget before `step`
    """
    elapsed = time.monotonic() - state["started_at"]
    if elapsed > state["timeout_seconds"]:
        raise PipelineTimeoutError(step, elapsed, state["timeout_seconds"])


def _timings(state: PipelineState, step: str, started: float) -> Dict[str, float]:
    return {**state["step_timings"], step: round(time.monotonic() - started, 3)}


async def router_node(state: PipelineState, router: Router) -> Dict[str, Any]:
    """
    Node 1: Route Intent

    Returns:
        Updates with:
        - strategy: ExecutionStrategy (fallback strategy on failure)
    """
    check_budget(state, STEP_ROUTER)
    started = time.monotonic()

    updates = await router.execute_node(state)
    updates["step_timings"] = _timings(state, STEP_ROUTER, started)

    logger.info(
        f"Strategy: mode={updates['strategy'].mode} "
        f"measure={updates['strategy'].execution_plan.measure_pixels} "
        f"physics={updates['strategy'].execution_plan.extract_physics}",
        correlation_id=state["correlation_id"]
    )
    return updates


def route_after_router(state: PipelineState) -> Literal["autonomy", "parallel"]:
    """Conditional edge: RESEARCH_AND_BUILD leaves the visual pipeline for the swarm."""
    if state["strategy"].mode == MODE_RESEARCH_AND_BUILD:
        return "autonomy"
    return "parallel"


async def autonomy_node(state: PipelineState, autonomy: AutonomyCore) -> Dict[str, Any]:
    """
    Node 2a: Autonomy

    Delegates the request to a fabricated swarm. A suspension comes back as
    command + suspended_state for the remote executor.
    """
    check_budget(state, STEP_AUTONOMY)
    started = time.monotonic()
    pipeline_input = state["input"]

    context = f"Files: {len(pipeline_input.files)}"
    if pipeline_input.current_code:
        context += "\nExisting code present."
    constraints = []
    if pipeline_input.repo_context and pipeline_input.repo_context.tech_stack:
        constraints.append(f"Use the existing stack: {', '.join(pipeline_input.repo_context.tech_stack)}")

    goal = AutonomyGoal(
        id=generate_prefixed_id("auto"),
        description=pipeline_input.instructions,
        context=context,
        technical_constraints=constraints,
    )
    result = await autonomy.solve_unknown(
        goal, repo_context=pipeline_input.repo_context, correlation_id=state["correlation_id"]
    )

    updates = autonomy_updates(result, state["warnings"])
    updates["step_timings"] = _timings(state, STEP_AUTONOMY, started)
    return updates


def autonomy_updates(result: AgentTaskResult, warnings: List[str]) -> Dict[str, Any]:
    """Map a swarm result onto pipeline output fields."""
    files = parse_autonomy_output(result.output) if result.output else []
    updates: Dict[str, Any] = {
        "files": files,
        "command": result.command,
        "suspended_state": result.suspended_state,
        "warnings": list(warnings),
    }
    if not result.success and result.command is None:
        updates["warnings"].append(result.error or "Autonomy failed")
    return updates


async def parallel_node(
    state: PipelineState,
    surveyor: Surveyor,
    physicist: Physicist,
    photographer: Photographer,
) -> Dict[str, Any]:
    """
    Node 2b: Parallel Analysis

    Surveyor, Physicist and Photographer run concurrently. Each failure becomes a warning
    naming the stage; the results of the others are kept.
    """
    check_budget(state, STEP_PARALLEL)
    started = time.monotonic()
    cid = state["correlation_id"]

    plan = state["strategy"].execution_plan
    files = state["input"].files

    tasks = {}
    if plan.measure_pixels:
        tasks[STAGE_SURVEYOR] = surveyor._execute(state)
    if any(i < len(files) and files[i].is_video for i in plan.extract_physics):
        tasks[STAGE_PHYSICIST] = physicist._execute(state)
    if any((a.type or "").lower() not in UNSUPPORTED_ASSET_TYPES for a in plan.generate_assets):
        tasks[STAGE_PHOTOGRAPHER] = photographer._execute(state)

    logger.debug(f"Parallel stages: {', '.join(tasks) or 'none'}", correlation_id=cid)

    updates: Dict[str, Any] = {}
    warnings = list(state["warnings"])
    for outcome in await join_all(tasks):
        if outcome.ok:
            updates.update(outcome.value)
            continue
        if isinstance(outcome.error, PipelineTimeoutError):
            raise outcome.error
        warning = f"{outcome.name} failed: {outcome.error}"
        logger.warning(warning, correlation_id=cid)
        warnings.append(warning)

    updates["warnings"] = warnings
    updates["step_timings"] = _timings(state, STEP_PARALLEL, started)
    return updates


async def extraction_node(state: PipelineState, extractor: AssetExtractor) -> Dict[str, Any]:
    """
    Node 3: Asset Extraction

    Crops custom visuals from the reference pixels; extracted entries override generated ones.
    """
    check_budget(state, STEP_EXTRACTION)
    started = time.monotonic()

    updates: Dict[str, Any] = {}
    if any(m.dom_tree is not None for m in state["manifests"]):
        updates = await extractor.execute_node(state)

    updates["step_timings"] = _timings(state, STEP_EXTRACTION, started)
    return updates


async def architect_node(state: PipelineState, architect: Architect) -> Dict[str, Any]:
    """Node 4: Structure Planning"""
    check_budget(state, STEP_ARCHITECT)
    started = time.monotonic()

    updates = await architect.execute_node(state)
    updates["step_timings"] = _timings(state, STEP_ARCHITECT, started)
    return updates


async def builder_node(state: PipelineState, builder: Builder) -> Dict[str, Any]:
    """Node 5: Code Synthesis"""
    check_budget(state, STEP_BUILDER)
    started = time.monotonic()

    updates = await builder.execute_node(state)
    updates["step_timings"] = _timings(state, STEP_BUILDER, started)
    return updates


async def healing_node(state: PipelineState, vision_loop: VisionLoop, builder: Builder) -> Dict[str, Any]:
    """
    Node 6: Vision Healing

    Skipped when requested or when there is nothing to heal. Without a reference image
    the loop reports `no_reference` without rendering anything.
    """
    check_budget(state, STEP_HEALING)
    started = time.monotonic()
    cid = state["correlation_id"]
    pipeline_input = state["input"]

    if pipeline_input.skip_healing or not state["files"]:
        logger.debug("Healing skipped", correlation_id=cid)
        return {"step_timings": _timings(state, STEP_HEALING, started)}

    async def regenerate(critique: str) -> List[AppFile]:
        return await builder.run(
            structure=state["structure"],
            manifests=state["manifests"],
            physics=state["physics"],
            strategy=state["strategy"],
            current_code=pipeline_input.current_code,
            instructions=f"{pipeline_input.instructions}\n\n{critique}",
            assets=state["assets"],
            repo_context=pipeline_input.repo_context,
            correlation_id=cid
        )

    result = await vision_loop.run_loop(
        files=state["files"],
        original_image=pipeline_input.reference_image(),
        manifests=state["manifests"],
        regenerate=regenerate,
        correlation_id=cid
    )

    logger.info(
        f"Healing: {result.stop_reason} after {result.iterations} iteration(s), "
        f"fidelity={result.fidelity_score}, patched={result.used_patching}",
        correlation_id=cid
    )
    return {
        "files": result.files,
        "healing_result": result.summary(),
        "step_timings": _timings(state, STEP_HEALING, started),
    }
