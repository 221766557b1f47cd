import json

import pytest
from unittest.mock import AsyncMock, patch

from pixelsmith.components.survey.surveyor import Surveyor, parse_manifest
from pixelsmith.exceptions import SurveyorError
from pixelsmith.schemas import ExecutionPlan, ExecutionStrategy, FileInput, PipelineInput

IMAGE = FileInput(data=b"png", mime_type="image/png", filename="hero.png")

SURVEY_REPLY = {
    "canvas": {"width": 1280, "height": 720, "background": "#0f172a"},
    "dom_tree": {
        "type": "section",
        "id": "hero",
        "styles": {"backgroundColor": "#1d4ed8"},
        "children": [
            {"type": "h1", "id": "hero_title", "text": "Ship faster"},
            {
                "type": "img",
                "id": "hero_logo",
                "hasCustomVisual": True,
                "extractionBounds": {"top": 5, "left": 5, "width": 10, "height": 10},
            },
        ],
    },
}


@pytest.fixture
def surveyor():
    """Fixture for creating a Surveyor instance with a mocked LLM client."""
    with patch("pixelsmith.components.survey.surveyor.config.get_surveyor_config", return_value={
        "model": "mock-model",
        "temperature": 0.0,
        "max_tokens": 256,
    }):
        with patch("pixelsmith.components.survey.surveyor.LLMClient") as MockClient:
            s = Surveyor()
            s.llm_client = MockClient.return_value
            s.llm_client.invoke = AsyncMock()
            return s


@pytest.mark.asyncio
async def test_run_builds_manifest_from_reply(surveyor):
    surveyor.llm_client.invoke.return_value = json.dumps(SURVEY_REPLY)

    manifest = await surveyor.run(IMAGE, 0)

    assert manifest.file_index == 0
    assert manifest.canvas.width == 1280
    assert manifest.dom_tree.id == "hero"
    logo = manifest.dom_tree.children[1]
    assert logo.has_custom_visual is True
    assert logo.extraction_bounds.width == 10
    surveyor.llm_client.invoke.assert_awaited_once()
    assert surveyor.llm_client.invoke.call_args.kwargs["attachments"] == [IMAGE]


@pytest.mark.asyncio
async def test_run_defaults_on_malformed_reply(surveyor):
    surveyor.llm_client.invoke.return_value = "Sorry, I cannot see the image."

    manifest = await surveyor.run(IMAGE, 2)

    assert manifest.file_index == 2
    assert manifest.canvas.width == 1440
    assert manifest.canvas.height == 900
    assert manifest.dom_tree is None


@pytest.mark.asyncio
async def test_run_rejects_non_image(surveyor):
    with pytest.raises(SurveyorError, match="not an image"):
        await surveyor.run(FileInput(data=b"v", mime_type="video/mp4"), 0)


def test_parse_manifest_requires_numeric_canvas_and_tree():
    assert parse_manifest({"canvas": {"width": "1280", "height": 720}, "dom_tree": {}}, 0) is None
    assert parse_manifest({"canvas": {"width": 1280, "height": 720}}, 0) is None
    assert parse_manifest({"dom_tree": {"type": "div"}}, 0) is None
    assert parse_manifest({"canvas": {"width": 10, "height": 10}, "dom_tree": {"type": "div"}}, 0) is not None


@pytest.mark.asyncio
async def test_execute_surveys_requested_indices_in_order(surveyor):
    surveyor.llm_client.invoke.return_value = json.dumps(SURVEY_REPLY)
    files = [IMAGE, FileInput(data=b"v", mime_type="video/mp4"), IMAGE]
    state = {
        "input": PipelineInput(files=files),
        "strategy": ExecutionStrategy(execution_plan=ExecutionPlan(measure_pixels=[0, 2])),
    }

    updates = await surveyor._execute(state)

    assert [m.file_index for m in updates["manifests"]] == [0, 2]
    assert surveyor.llm_client.invoke.await_count == 2
