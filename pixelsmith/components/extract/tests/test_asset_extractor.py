import base64
import io

import pytest
from PIL import Image

from pixelsmith.components.extract.asset_extractor import (
    AssetExtractor,
    collect_targets,
    merge_assets,
    pixel_box,
)
from pixelsmith.exceptions import AssetExtractionError
from pixelsmith.schemas import DomNode, ExtractionBounds, FileInput, PipelineInput, VisualManifest


def _png(width=200, height=100, color=(255, 0, 0)) -> FileInput:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return FileInput(data=buffer.getvalue(), mime_type="image/png", filename="ref.png")


def _tree() -> DomNode:
    return DomNode.model_validate({
        "type": "div",
        "id": "root",
        "children": [
            {"type": "img", "id": "logo", "hasCustomVisual": True,
             "extractionBounds": {"top": 0, "left": 0, "width": 50, "height": 50}},
            {"type": "img", "id": "broken", "hasCustomVisual": True,
             "extractionBounds": {"top": 0, "left": 100, "width": 10, "height": 10}},
            {"type": "img", "hasCustomVisual": True,
             "extractionBounds": {"top": 0, "left": 0, "width": 10, "height": 10}},
            {"type": "p", "id": "copy", "text": "hello"},
        ],
    })


def test_collect_targets_requires_flag_bounds_and_id():
    assert [asset_id for asset_id, _ in collect_targets(_tree())] == ["logo", "broken"]


def test_pixel_box_converts_and_clamps():
    bounds = ExtractionBounds(top=50, left=50, width=80, height=80)
    assert pixel_box(bounds, 200, 100) == (100, 50, 200, 100)


def test_pixel_box_rejects_empty_region():
    with pytest.raises(AssetExtractionError, match="Invalid crop dimensions"):
        pixel_box(ExtractionBounds(top=0, left=100, width=10, height=10), 200, 100)


@pytest.mark.asyncio
async def test_run_crops_valid_nodes_and_skips_failures():
    extractor = AssetExtractor()

    assets = await extractor.run(_tree(), _png())

    assert list(assets) == ["logo"]
    assert assets["logo"].startswith("data:image/webp;base64,")
    cropped = Image.open(io.BytesIO(base64.b64decode(assets["logo"].split(",", 1)[1])))
    assert cropped.size == (100, 50)


@pytest.mark.asyncio
async def test_run_png_format():
    assets = await AssetExtractor(image_format="png").run(_tree(), _png())
    assert assets["logo"].startswith("data:image/png;base64,")


def test_merge_prefers_extracted_assets():
    merged = merge_assets({"logo": "https://generated", "sky": "https://sky"}, {"logo": "data:extracted"})
    assert merged == {"logo": "data:extracted", "sky": "https://sky"}


@pytest.mark.asyncio
async def test_execute_merges_into_generated_assets():
    state = {
        "input": PipelineInput(files=[_png()]),
        "manifests": [VisualManifest(file_index=0, dom_tree=_tree()), VisualManifest(file_index=0)],
        "assets": {"logo": "https://generated", "wood": "https://wood"},
    }

    updates = await AssetExtractor()._execute(state)

    assert updates["assets"]["wood"] == "https://wood"
    assert updates["assets"]["logo"].startswith("data:image/webp")
