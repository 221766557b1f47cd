import pytest
from unittest.mock import AsyncMock, MagicMock

from pixelsmith.exceptions import RenderError
from pixelsmith.healing.vision_loop import VisionLoop, component_list
from pixelsmith.schemas import (
    AppFile,
    Critique,
    Discrepancy,
    DomNode,
    FileInput,
    LiveEditResult,
    VisualManifest,
)

REFERENCE = FileInput(data=b"ref", mime_type="image/png", filename="ref.png")
RENDERED = FileInput(data=b"png", mime_type="image/png", filename="render.png")
FILES = [
    AppFile(path="/src/App.tsx", content="v1"),
    AppFile(path="/src/index.tsx", content="index"),
]
MANIFESTS = [VisualManifest(
    file_index=0,
    dom_tree=DomNode(type="section", id="hero", children=[DomNode(type="button", id="cta", text="Go")]),
)]


def _critique(score, recommendation="refine", discrepancies=None):
    return Critique(fidelity_score=score, recommendation=recommendation, discrepancies=discrepancies or [])


def _patchable(component_id="cta"):
    return Discrepancy(
        component_id=component_id,
        issue="button color",
        severity="moderate",
        correction={"style": {"backgroundColor": "#2563eb"}},
    )


@pytest.fixture
def loop():
    renderer = MagicMock()
    renderer.render = AsyncMock(return_value=RENDERED)
    critic = MagicMock()
    critic.run = AsyncMock()
    live_editor = MagicMock()
    live_editor.run = AsyncMock()
    return VisionLoop(
        critic=critic, renderer=renderer, live_editor=live_editor, max_iterations=3, target_fidelity=90
    )


@pytest.mark.asyncio
async def test_no_reference_skips_healing(loop):
    regenerate = AsyncMock()

    result = await loop.run_loop(FILES, None, MANIFESTS, regenerate)

    assert result.stop_reason == "no_reference"
    assert result.iterations == 0
    assert result.files == FILES
    loop.renderer.render.assert_not_awaited()


@pytest.mark.asyncio
async def test_accept_on_first_iteration(loop):
    loop.critic.run.return_value = _critique(95, "accept")

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, AsyncMock())

    assert result.stop_reason == "threshold_met"
    assert result.iterations == 1
    assert result.fidelity_score == 95
    assert result.files == FILES


@pytest.mark.asyncio
async def test_regenerates_until_threshold(loop):
    improved = [AppFile(path="/src/App.tsx", content="v2")]
    loop.critic.run.side_effect = [_critique(60, "regenerate"), _critique(92, "accept")]
    regenerate = AsyncMock(return_value=improved)

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, regenerate)

    assert result.stop_reason == "threshold_met"
    assert result.iterations == 2
    assert result.files == improved
    assert result.used_patching is False
    assert regenerate.call_args.args[0].startswith("VISUAL CRITIQUE (fidelity 60")


@pytest.mark.asyncio
async def test_refine_patches_entry_file(loop):
    loop.critic.run.side_effect = [
        _critique(80, "refine", [_patchable(), _patchable("global")]),
        _critique(93, "accept"),
    ]
    loop.live_editor.run.return_value = LiveEditResult(updated_code="v1-patched", success=True)
    regenerate = AsyncMock()

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, regenerate)

    assert result.used_patching is True
    assert result.files[0].content == "v1-patched"
    assert result.files[1].content == "index"
    regenerate.assert_not_awaited()
    # only the discrepancy naming a known component is patched
    assert loop.live_editor.run.await_count == 1
    assert loop.live_editor.run.call_args.args[1] == "cta"


@pytest.mark.asyncio
async def test_refine_falls_back_to_regeneration_when_every_patch_fails(loop):
    loop.critic.run.side_effect = [_critique(80, "refine", [_patchable()]), _critique(91, "accept")]
    loop.live_editor.run.return_value = LiveEditResult(updated_code="v1", success=False, error="boom")
    regenerated = [AppFile(path="/src/App.tsx", content="v2")]
    regenerate = AsyncMock(return_value=regenerated)

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, regenerate)

    regenerate.assert_awaited_once()
    assert result.files == regenerated
    assert result.used_patching is False


@pytest.mark.asyncio
async def test_stops_at_max_iterations_with_last_critiqued_files(loop):
    versions = [[AppFile(path="/src/App.tsx", content=f"v{i}")] for i in (2, 3)]
    loop.critic.run.side_effect = [_critique(50, "regenerate"), _critique(60, "regenerate"), _critique(70, "regenerate")]
    regenerate = AsyncMock(side_effect=versions)

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, regenerate)

    assert result.stop_reason == "max_iterations"
    assert result.iterations == 3
    assert result.fidelity_score == 70
    assert result.files == versions[-1]
    assert regenerate.await_count == 2
    assert loop.critic.run.await_count == 3


@pytest.mark.asyncio
async def test_zero_iterations_is_kept_and_never_critiques(loop):
    """An explicit budget of zero is not replaced by the configured default."""
    zero = VisionLoop(critic=loop.critic, renderer=loop.renderer, live_editor=loop.live_editor, max_iterations=0)

    result = await zero.run_loop(FILES, REFERENCE, MANIFESTS, AsyncMock())

    assert zero.max_iterations == 0
    assert result.stop_reason == "max_iterations"
    assert result.iterations == 0
    assert result.files == FILES
    loop.critic.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_render_error_keeps_last_good_files(loop):
    improved = [AppFile(path="/src/App.tsx", content="v2")]
    loop.critic.run.return_value = _critique(55, "regenerate")
    loop.renderer.render.side_effect = [RENDERED, RenderError("screenshot service failed")]

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, AsyncMock(return_value=improved))

    assert result.stop_reason == "error"
    assert result.iterations == 2
    assert result.fidelity_score == 55
    assert result.files == improved


@pytest.mark.asyncio
async def test_regeneration_error_keeps_current_files(loop):
    loop.critic.run.return_value = _critique(40, "regenerate")

    result = await loop.run_loop(FILES, REFERENCE, MANIFESTS, AsyncMock(side_effect=RuntimeError("model down")))

    assert result.stop_reason == "error"
    assert result.files == FILES
    assert result.summary().stop_reason == "error"


def test_component_list_flattens_unique_ids():
    duplicate = VisualManifest(file_index=1, dom_tree=DomNode(type="button", id="cta"))
    components = component_list(MANIFESTS + [duplicate, VisualManifest(file_index=2)])

    assert [(c.id, c.type) for c in components] == [("hero", "section"), ("cta", "button")]
    assert components[1].text == "Go"
