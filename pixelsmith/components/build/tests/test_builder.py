import pytest
from unittest.mock import AsyncMock, patch

from pixelsmith.components.build.builder import Builder, wants_3d
from pixelsmith.exceptions import BuilderError
from pixelsmith.schemas import (
    ComponentStructure,
    DomNode,
    ExecutionPlan,
    ExecutionStrategy,
    MotionPhysics,
    PipelineInput,
    RepoContext,
    VisualManifest,
)

APP_CODE = "export default function App() {\n  return <div data-id=\"hero\" />;\n}"


@pytest.fixture
def builder():
    """Fixture for creating a Builder instance with a mocked LLM client."""
    with patch("pixelsmith.components.build.builder.config.get_builder_config", return_value={
        "model": "mock-model",
        "temperature": 0.2,
        "max_tokens": 256,
    }):
        with patch("pixelsmith.components.build.builder.LLMClient") as MockClient:
            b = Builder()
            b.llm_client = MockClient.return_value
            b.llm_client.invoke = AsyncMock()
            return b


async def _build(builder, **overrides):
    kwargs = dict(
        structure=ComponentStructure(),
        manifests=[VisualManifest(file_index=0, dom_tree=DomNode(type="section", id="hero"))],
        physics=None,
        strategy=ExecutionStrategy(),
        current_code=None,
        instructions="make the hero blue",
        assets={},
    )
    kwargs.update(overrides)
    return await builder.run(**kwargs)


@pytest.mark.asyncio
async def test_run_returns_entry_and_index_files(builder):
    builder.llm_client.invoke.return_value = f"Sure! Here is the code:\n```tsx\n{APP_CODE}\n```\nEnjoy."

    files = await _build(builder)

    assert [f.path for f in files] == ["/src/App.tsx", "/src/index.tsx"]
    assert files[0].content == APP_CODE
    assert "createRoot" in files[1].content


@pytest.mark.asyncio
async def test_run_uses_manifests_when_structure_empty(builder):
    builder.llm_client.invoke.return_value = APP_CODE

    await _build(builder)

    prompt = builder.llm_client.invoke.call_args.args[0]
    assert "### MANIFESTS" in prompt
    assert "### STRUCTURE" not in prompt


@pytest.mark.asyncio
async def test_run_uses_structure_assets_physics_and_repo(builder):
    builder.llm_client.invoke.return_value = APP_CODE

    await _build(
        builder,
        structure=ComponentStructure(tree=[{"tag": "section", "data-id": "hero"}]),
        physics=MotionPhysics(component_motions=[{"component": "hero", "type": "spring"}]),
        assets={"wood": "https://img/wood.png"},
        repo_context=RepoContext(style_guide="Use tokens", tech_stack=["react", "tailwind"]),
        current_code="export default () => null;",
    )

    prompt = builder.llm_client.invoke.call_args.args[0]
    assert "### STRUCTURE" in prompt
    assert '"wood" -> https://img/wood.png' in prompt
    assert "### PHYSICS" in prompt
    assert "react, tailwind" in prompt
    assert "### CURRENT CODE" in prompt
    assert "### 3D" not in prompt


@pytest.mark.asyncio
async def test_run_raises_on_empty_code(builder):
    builder.llm_client.invoke.return_value = "   "

    with pytest.raises(BuilderError, match="no code"):
        await _build(builder)


def test_wants_3d_from_flag_or_keywords():
    plain = ExecutionStrategy()
    flagged = ExecutionStrategy(execution_plan=ExecutionPlan(enable_3d=True))

    assert wants_3d(flagged, "a pricing page")
    assert wants_3d(plain, "a spinning Three.js globe")
    assert wants_3d(plain, "add a 3D card flip")
    assert wants_3d(plain, "custom GLSL shader background")
    assert not wants_3d(plain, "make the hero blue")
    assert not wants_3d(plain, "threefold growth chart")


@pytest.mark.asyncio
async def test_3d_guidance_included_for_keyword(builder):
    builder.llm_client.invoke.return_value = APP_CODE

    await _build(builder, instructions="render the product in WebGL")

    assert "### 3D" in builder.llm_client.invoke.call_args.args[0]


@pytest.mark.asyncio
async def test_execute_node_falls_back_to_current_code(builder):
    builder.llm_client.invoke.side_effect = RuntimeError("timeout")
    state = {
        "input": PipelineInput(instructions="x", current_code="const old = 1;"),
        "strategy": ExecutionStrategy(),
        "warnings": [],
    }

    updates = await builder.execute_node(state)

    assert [(f.path, f.content) for f in updates["files"]] == [("/src/App.tsx", "const old = 1;")]
    assert updates["warnings"] == ["Builder failed: timeout"]
