from pathlib import Path

from conftest import FakeConverter, build_config, png_bytes

from text_image.core import ConversionService
from text_image.rendering import ImageRenderer, ImageSpec, OriginalImageStrategy, TextImageStrategy


def test_default_strategy_leaves_images_alone() -> None:
    renderer = ImageRenderer()
    assert isinstance(renderer.strategy, OriginalImageStrategy)
    assert renderer.render_image(ImageSpec(data=png_bytes())) is None


def test_text_strategy_converts_and_reuses_cache(tmp_path: Path, fake_converter: FakeConverter) -> None:
    service = ConversionService(build_config(tmp_path, fake_converter))
    renderer = ImageRenderer()
    previous = renderer.set_strategy(TextImageStrategy(service))
    assert isinstance(previous, OriginalImageStrategy)

    image = ImageSpec(data=png_bytes(), alt="diagram")
    first = renderer.render_image(image)
    second = renderer.render_image(image)

    assert first is not None
    assert second is first
    [call] = fake_converter.calls()
    assert call["argv"][1:] == ["--complex", "--threshold", "100", "--braille", "--dither"]


def test_text_strategy_falls_back_on_failure(tmp_path: Path, fake_converter: FakeConverter) -> None:
    service = ConversionService(build_config(tmp_path, fake_converter, FAKE_CONVERTER_MODE="fail"))
    strategy = TextImageStrategy(service)
    assert strategy.render(ImageSpec(data=png_bytes())) is None
    assert strategy.render(ImageSpec()) is None


def test_switching_back_restores_original_rendering(tmp_path: Path, fake_converter: FakeConverter) -> None:
    service = ConversionService(build_config(tmp_path, fake_converter))
    renderer = ImageRenderer(TextImageStrategy(service))
    renderer.set_strategy(OriginalImageStrategy())
    assert renderer.render_image(ImageSpec(data=png_bytes())) is None
    assert fake_converter.calls() == []
