import pytest
from unittest.mock import AsyncMock, patch

from pixelsmith.components.photograph.photographer import Photographer
from pixelsmith.exceptions import PhotographerError
from pixelsmith.schemas import AssetRequest


@pytest.fixture
def photographer():
    """Fixture for creating a Photographer instance with a mocked image client."""
    with patch("pixelsmith.components.photograph.photographer.config.get_image_config", return_value={
        "model": "mock-image-model",
        "size": "512x512",
    }):
        with patch("pixelsmith.components.photograph.photographer.ImageClient") as MockClient:
            p = Photographer()
            p.image_client = MockClient.return_value
            p.image_client.generate = AsyncMock()
            return p


@pytest.mark.asyncio
async def test_run_generates_each_asset(photographer):
    photographer.image_client.generate.side_effect = ["https://img/wood.png", "https://img/sky.png"]
    assets = [AssetRequest(name="wood", description="oak grain"), AssetRequest(name="sky", vibe="dreamy")]

    result = await photographer.run(assets)

    assert result == {"wood": "https://img/wood.png", "sky": "https://img/sky.png"}
    first_prompt = photographer.image_client.generate.call_args_list[0].args[0]
    assert "photorealistic" in first_prompt
    assert "oak grain" in first_prompt


@pytest.mark.asyncio
async def test_run_skips_environment_assets(photographer):
    photographer.image_client.generate.return_value = "https://img/x.png"
    assets = [
        AssetRequest(name="studio", type="hdri"),
        AssetRequest(name="sunset", type="Environment"),
        AssetRequest(name="marble"),
    ]

    result = await photographer.run(assets)

    assert list(result) == ["marble"]
    assert photographer.image_client.generate.await_count == 1


@pytest.mark.asyncio
async def test_run_keeps_partial_results(photographer):
    photographer.image_client.generate.side_effect = [RuntimeError("content policy"), "https://img/b.png"]

    result = await photographer.run([AssetRequest(name="a"), AssetRequest(name="b")])

    assert result == {"b": "https://img/b.png"}


@pytest.mark.asyncio
async def test_run_raises_when_every_asset_fails(photographer):
    photographer.image_client.generate.side_effect = RuntimeError("quota")

    with pytest.raises(PhotographerError, match="all 1 asset generations failed"):
        await photographer.run([AssetRequest(name="a")])


@pytest.mark.asyncio
async def test_run_with_nothing_to_generate(photographer):
    assert await photographer.run([AssetRequest(name="env", type="hdri")]) == {}
