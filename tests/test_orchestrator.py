import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from pixelsmith.exceptions import PhotographerError, PhysicistError, PipelineTimeoutError, SurveyorError
from pixelsmith.healing.vision_loop import HealingLoopResult, VisionLoop
from pixelsmith.orchestrator.orchestrator import PipelineOrchestrator
from pixelsmith.schemas import (
    AppFile,
    AssetRequest,
    ComponentStructure,
    ExecutionPlan,
    ExecutionStrategy,
    FileInput,
    MotionPhysics,
    PipelineInput,
    VisualManifest,
)
from pixelsmith.swarm.schemas import (
    AgentFeedback,
    AgentSwarm,
    AgentTaskResult,
    Command,
    FabricatedAgent,
    SuspendedState,
)

IMAGE = FileInput(data=b"png", mime_type="image/png", filename="hero.png")
VIDEO = FileInput(data=b"mp4", mime_type="video/mp4", filename="scroll.mp4")
BUILT = [AppFile(path="/src/App.tsx", content="export default function App() {}")]


def _strategy(mode="CREATE", measure=None, physics=None, assets=None):
    return ExecutionStrategy(
        mode=mode,
        execution_plan=ExecutionPlan(
            measure_pixels=measure or [], extract_physics=physics or [], generate_assets=assets or []
        ),
    )


def _suspended_state():
    swarm = AgentSwarm(id="swarm_1", mission="todo app", agents=[
        FabricatedAgent(id="a1", name="Checker", role="DEBUGGER", system_prompt="Run the tests."),
    ])
    command = Command(id="cmd_1", type="shell", command="npm test")
    return SuspendedState(swarm=swarm, agent_id="a1", command=command, memory={"Coder": "code"})


@pytest.fixture
def stages():
    """Mocked collaborators for every pipeline node."""
    router = MagicMock()
    router.execute_node = AsyncMock(return_value={"strategy": _strategy(measure=[0])})

    surveyor = MagicMock()
    surveyor._execute = AsyncMock(return_value={"manifests": [VisualManifest(file_index=0)]})
    physicist = MagicMock()
    physicist._execute = AsyncMock(return_value={})
    photographer = MagicMock()
    photographer._execute = AsyncMock(return_value={"assets": {}})

    extractor = MagicMock()
    extractor.execute_node = AsyncMock(return_value={})
    architect = MagicMock()
    architect.execute_node = AsyncMock(return_value={"structure": ComponentStructure()})
    builder = MagicMock()
    builder.execute_node = AsyncMock(return_value={"files": BUILT})
    builder.run = AsyncMock(return_value=BUILT)

    vision_loop = MagicMock()
    vision_loop.run_loop = AsyncMock(return_value=HealingLoopResult(
        files=BUILT, fidelity_score=95, iterations=1, stop_reason="threshold_met"
    ))
    autonomy = MagicMock()
    autonomy.solve_unknown = AsyncMock()
    autonomy.resume = AsyncMock()

    return {
        "router": router,
        "surveyor": surveyor,
        "physicist": physicist,
        "photographer": photographer,
        "extractor": extractor,
        "architect": architect,
        "builder": builder,
        "vision_loop": vision_loop,
        "autonomy": autonomy,
    }


@pytest.mark.asyncio
async def test_visual_pipeline_runs_every_step(stages):
    """A CREATE run should pass through every visual node and record a timing for each."""
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(files=[IMAGE], instructions="build it"))

    assert result.files == BUILT
    assert result.strategy.mode == "CREATE"
    assert result.healing_result.stop_reason == "threshold_met"
    assert set(result.step_timings) == {"router", "parallel", "extraction", "architect", "builder", "healing"}
    assert result.command is None
    stages["autonomy"].solve_unknown.assert_not_called()
    stages["physicist"]._execute.assert_not_called()


PARALLEL_RESULTS = {
    "surveyor": {"manifests": [VisualManifest(file_index=0)]},
    "physicist": {"physics": MotionPhysics(component_motions=[{"component_id": "hero", "type": "spring"}])},
    "photographer": {"assets": {"wood": "https://img/wood.png"}},
}


@pytest.mark.asyncio
@pytest.mark.parametrize("failing, error, stage_name", [
    ("surveyor", SurveyorError("Input 0 is not an image"), "Surveyor"),
    ("physicist", PhysicistError("video upload failed"), "Physicist"),
    ("photographer", PhotographerError("all 1 asset generations failed"), "Photographer"),
])
async def test_parallel_failure_keeps_other_results(stages, failing, error, stage_name):
    """One failing analysis stage becomes a warning; the other two results reach the builder."""
    stages["router"].execute_node.return_value = {
        "strategy": _strategy(measure=[0], physics=[1], assets=[AssetRequest(name="wood", description="oak")])
    }
    for name, result in PARALLEL_RESULTS.items():
        stages[name]._execute = AsyncMock(return_value=result)
    stages[failing]._execute.side_effect = error
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(files=[IMAGE, VIDEO], instructions="build it"))

    for name in PARALLEL_RESULTS:
        stages[name]._execute.assert_awaited_once()
    assert result.warnings == [f"{stage_name} failed: {error}"]
    assert result.files == BUILT

    built_from = stages["builder"].execute_node.call_args.args[0]
    assert (len(result.manifests) == 1) == (failing != "surveyor")
    assert (result.physics is not None) == (failing != "physicist")
    assert (built_from["assets"] == {"wood": "https://img/wood.png"}) == (failing != "photographer")


@pytest.mark.asyncio
async def test_environment_assets_do_not_start_photographer(stages):
    stages["router"].execute_node.return_value = {
        "strategy": _strategy(measure=[0], assets=[AssetRequest(name="sky", type="hdri")])
    }
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    await orchestrator.run(PipelineInput(files=[IMAGE], instructions="build it"))

    stages["photographer"]._execute.assert_not_called()


@pytest.mark.asyncio
async def test_skip_healing(stages):
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(files=[IMAGE], instructions="x", skip_healing=True))

    stages["vision_loop"].run_loop.assert_not_called()
    assert result.healing_result is None
    assert "healing" in result.step_timings


@pytest.mark.asyncio
async def test_no_reference_image_never_renders(stages):
    """Without an uploaded image the healing loop stops before rendering anything."""
    renderer = MagicMock()
    renderer.render = AsyncMock()
    critic = MagicMock()
    critic.run = AsyncMock()
    stages["vision_loop"] = VisionLoop(critic=critic, renderer=renderer, live_editor=MagicMock())
    stages["router"].execute_node.return_value = {"strategy": _strategy()}
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(instructions="a pricing page"))

    renderer.render.assert_not_called()
    critic.run.assert_not_called()
    assert result.healing_result.stop_reason == "no_reference"
    assert result.files == BUILT


@pytest.mark.asyncio
async def test_timeout_aborts_run(stages):
    """Exceeding the wall-clock budget before a step raises instead of returning partial output."""
    async def slow_route(state):
        await asyncio.sleep(0.05)
        return {"strategy": _strategy(measure=[0])}

    stages["router"].execute_node = AsyncMock(side_effect=slow_route)
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=0.01)

    with pytest.raises(PipelineTimeoutError) as exc:
        await orchestrator.run(PipelineInput(files=[IMAGE], instructions="x"))

    assert exc.value.step == "parallel"
    stages["builder"].execute_node.assert_not_called()


@pytest.mark.asyncio
async def test_research_mode_routes_to_autonomy(stages):
    stages["router"].execute_node.return_value = {"strategy": _strategy(mode="RESEARCH_AND_BUILD")}
    stages["autonomy"].solve_unknown.return_value = AgentTaskResult.succeeded(
        "// === /src/App.tsx ===\nexport default function App() {}\n"
        "// === /src/store.ts ===\nexport const store = {};\n"
    )
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(instructions="a realtime multiplayer todo app"))

    assert [f.path for f in result.files] == ["/src/App.tsx", "/src/store.ts"]
    assert "autonomy" in result.step_timings
    assert "parallel" not in result.step_timings
    stages["builder"].execute_node.assert_not_called()

    goal = stages["autonomy"].solve_unknown.call_args.args[0]
    assert goal.id.startswith("auto_")
    assert goal.description == "a realtime multiplayer todo app"
    assert goal.context == "Files: 0"


@pytest.mark.asyncio
async def test_autonomy_suspension_is_returned(stages):
    """A suspended swarm surfaces its command and state for the remote executor."""
    state = _suspended_state()
    stages["router"].execute_node.return_value = {"strategy": _strategy(mode="RESEARCH_AND_BUILD")}
    stages["autonomy"].solve_unknown.return_value = AgentTaskResult.suspended("code", state)
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(instructions="build and verify"))

    assert result.awaiting_remote_execution
    assert result.command.command == "npm test"
    assert result.suspended_state == state
    assert result.warnings == []


@pytest.mark.asyncio
async def test_autonomy_failure_becomes_warning(stages):
    stages["router"].execute_node.return_value = {"strategy": _strategy(mode="RESEARCH_AND_BUILD")}
    stages["autonomy"].solve_unknown.return_value = AgentTaskResult.failed("Code generation failed (Coder): boom")
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.run(PipelineInput(instructions="x"))

    assert result.files == []
    assert result.warnings == ["Code generation failed (Coder): boom"]


@pytest.mark.asyncio
async def test_resume_forwards_feedback(stages):
    state = _suspended_state()
    feedback = AgentFeedback(command_id="cmd_1", exit_code=0, output="all tests passed")
    stages["autonomy"].resume.return_value = AgentTaskResult.succeeded("export default function App() {}")
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    result = await orchestrator.resume(state, feedback)

    assert result.strategy.mode == "RESEARCH_AND_BUILD"
    assert result.files[0].path == "/src/App.tsx"
    assert result.command is None
    assert "autonomy" in result.step_timings
    args = stages["autonomy"].resume.call_args
    assert args.args[0] == state
    assert args.args[1] == feedback


@pytest.mark.asyncio
async def test_healing_regeneration_carries_run_context(stages):
    """The regenerate closure handed to the loop rebuilds with the run's physics and assets."""
    physics = MotionPhysics(component_motions=[{"component_id": "hero", "type": "spring"}])
    stages["router"].execute_node.return_value = {
        "strategy": _strategy(measure=[0], physics=[1], assets=[AssetRequest(name="wood", description="oak")])
    }
    stages["physicist"]._execute = AsyncMock(return_value={"physics": physics})
    stages["photographer"]._execute = AsyncMock(return_value={"assets": {"wood": "https://img/wood.png"}})
    orchestrator = PipelineOrchestrator(**stages, timeout_seconds=60)

    await orchestrator.run(PipelineInput(files=[IMAGE, VIDEO], instructions="build it"))
    regenerate = stages["vision_loop"].run_loop.call_args.kwargs["regenerate"]
    await regenerate("Fidelity 40: hero misaligned")

    kwargs = stages["builder"].run.call_args.kwargs
    assert kwargs["physics"] == physics
    assert kwargs["assets"] == {"wood": "https://img/wood.png"}
    assert kwargs["strategy"].mode == "CREATE"
    assert kwargs["instructions"] == "build it\n\nFidelity 40: hero misaligned"
