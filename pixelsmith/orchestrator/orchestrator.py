"""
Pixelsmith Pipeline Orchestrator
"""

import time
from typing import Any, Dict, Optional

from langgraph.graph import StateGraph, END

from pixelsmith.components.architect.architect import Architect
from pixelsmith.components.build.builder import Builder
from pixelsmith.components.extract.asset_extractor import AssetExtractor
from pixelsmith.components.photograph.photographer import Photographer
from pixelsmith.components.physics.physicist import Physicist
from pixelsmith.components.route.router import Router
from pixelsmith.components.survey.surveyor import Surveyor
from pixelsmith.config import config
from pixelsmith.constants import MODE_RESEARCH_AND_BUILD, STEP_AUTONOMY
from pixelsmith.healing.vision_loop import VisionLoop
from pixelsmith.orchestrator.nodes import (
    architect_node,
    autonomy_node,
    autonomy_updates,
    builder_node,
    extraction_node,
    healing_node,
    parallel_node,
    route_after_router,
    router_node,
)
from pixelsmith.orchestrator.state import PipelineState
from pixelsmith.schemas import ExecutionStrategy, PipelineInput, PipelineResult
from pixelsmith.swarm.autonomy import AutonomyCore
from pixelsmith.swarm.schemas import AgentFeedback, SuspendedState
from pixelsmith.utils.correlation import generate_correlation_id
from pixelsmith.utils.logger import get_logger


logger = get_logger(__name__, "PipelineOrchestrator")


class PipelineOrchestrator:
    """Visual reference to code orchestrator."""

    def __init__(
        self,
        router: Optional[Router] = None,
        surveyor: Optional[Surveyor] = None,
        physicist: Optional[Physicist] = None,
        photographer: Optional[Photographer] = None,
        extractor: Optional[AssetExtractor] = None,
        architect: Optional[Architect] = None,
        builder: Optional[Builder] = None,
        vision_loop: Optional[VisionLoop] = None,
        autonomy: Optional[AutonomyCore] = None,
        timeout_seconds: float = None
    ):
        self.router = router or Router()
        self.surveyor = surveyor or Surveyor()
        self.physicist = physicist or Physicist()
        self.photographer = photographer or Photographer()
        self.extractor = extractor or AssetExtractor()
        self.architect = architect or Architect()
        self.builder = builder or Builder()
        self.vision_loop = vision_loop or VisionLoop()
        self.autonomy = autonomy or AutonomyCore()
        self.timeout_seconds = timeout_seconds or config.PIPELINE_TIMEOUT_SECONDS

        self.graph = self._build_graph()

        logger.info("Initialised Orchestrator", correlation_id="INIT")

    def _build_graph(self) -> StateGraph:
        workflow = StateGraph(PipelineState)

        workflow.add_node("router", self._router)
        workflow.add_node("autonomy", self._autonomy)
        workflow.add_node("parallel", self._parallel)
        workflow.add_node("extraction", self._extraction)
        workflow.add_node("architect", self._architect)
        workflow.add_node("builder", self._builder)
        workflow.add_node("healing", self._healing)

        workflow.set_entry_point("router")
        workflow.add_conditional_edges("router", route_after_router, {"autonomy": "autonomy", "parallel": "parallel"})
        workflow.add_edge("autonomy", END)

        workflow.add_edge("parallel", "extraction")
        workflow.add_edge("extraction", "architect")
        workflow.add_edge("architect", "builder")
        workflow.add_edge("builder", "healing")
        workflow.add_edge("healing", END)
        return workflow.compile()

    # Graph nodes bind the stage instances owned by this orchestrator

    async def _router(self, state: PipelineState) -> Dict[str, Any]:
        return await router_node(state, self.router)

    async def _autonomy(self, state: PipelineState) -> Dict[str, Any]:
        return await autonomy_node(state, self.autonomy)

    async def _parallel(self, state: PipelineState) -> Dict[str, Any]:
        return await parallel_node(state, self.surveyor, self.physicist, self.photographer)

    async def _extraction(self, state: PipelineState) -> Dict[str, Any]:
        return await extraction_node(state, self.extractor)

    async def _architect(self, state: PipelineState) -> Dict[str, Any]:
        return await architect_node(state, self.architect)

    async def _builder(self, state: PipelineState) -> Dict[str, Any]:
        return await builder_node(state, self.builder)

    async def _healing(self, state: PipelineState) -> Dict[str, Any]:
        return await healing_node(state, self.vision_loop, self.builder)

    async def run(self, pipeline_input: PipelineInput) -> PipelineResult:
        """
        Run the full pipeline for one request.

        Raises:
            PipelineTimeoutError: When the wall-clock budget is exceeded before a major step
        """
        correlation_id = generate_correlation_id()

        logger.info(
            f"Starting pipeline ({len(pipeline_input.files)} files, "
            f"current_code={'yes' if pipeline_input.current_code else 'no'}, "
            f"skip_healing={pipeline_input.skip_healing})",
            correlation_id=correlation_id
        )

        initial_state: PipelineState = {
            "correlation_id": correlation_id,
            "input": pipeline_input,
            "started_at": time.monotonic(),
            "timeout_seconds": self.timeout_seconds,
            "strategy": None,
            "manifests": [],
            "physics": None,
            "assets": {},
            "structure": None,
            "files": [],
            "warnings": [],
            "step_timings": {},
            "healing_result": None,
            "command": None,
            "suspended_state": None,
        }

        start_time = time.monotonic()
        final_state = await self.graph.ainvoke(initial_state)
        duration = time.monotonic() - start_time

        self._log_summary(final_state, duration)

        return PipelineResult(
            files=final_state["files"],
            strategy=final_state["strategy"],
            manifests=final_state["manifests"],
            physics=final_state["physics"],
            warnings=final_state["warnings"],
            step_timings=final_state["step_timings"],
            healing_result=final_state["healing_result"],
            command=final_state["command"],
            suspended_state=final_state["suspended_state"],
        )

    async def resume(self, suspended_state: SuspendedState, feedback: AgentFeedback) -> PipelineResult:
        """Continue a suspended autonomy run with the remote command result."""
        correlation_id = generate_correlation_id()
        logger.info(
            f"Resuming swarm {suspended_state.swarm_id} (command {feedback.command_id}, exit {feedback.exit_code})",
            correlation_id=correlation_id
        )

        started = time.monotonic()
        result = await self.autonomy.resume(suspended_state, feedback, correlation_id=correlation_id)
        updates = autonomy_updates(result, [])

        return PipelineResult(
            strategy=ExecutionStrategy(mode=MODE_RESEARCH_AND_BUILD),
            step_timings={STEP_AUTONOMY: round(time.monotonic() - started, 3)},
            **updates,
        )

    def _log_summary(self, state: PipelineState, duration: float) -> None:
        cid = state["correlation_id"]
        logger.info(f"Mode: {state['strategy'].mode} | Files: {len(state['files'])} | Duration: {duration:.2f}s", correlation_id=cid)
        logger.info(f"Step timings: {' | '.join(f'{k}={v:.2f}s' for k, v in state['step_timings'].items())}", correlation_id=cid)
        if state["warnings"]:
            logger.warning(f"Warnings ({len(state['warnings'])}): {' | '.join(state['warnings'])}", correlation_id=cid)
        if state["command"] is not None:
            logger.info(f"Awaiting remote command {state['command'].type}: {state['command'].command}", correlation_id=cid)
