from pathlib import Path

import httpx
import pytest
from PIL import Image

from conftest import decompression_bomb_gif, gif_bytes, png_bytes

from text_image.detection import ImageType
from text_image.errors import ConversionFailedError, FetchError
from text_image.sources import SourceMaterializer
from text_image.utils import TempFiles


def build_materializer(content: bytes, status_code: int = 200) -> SourceMaterializer:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["User-Agent"] == "text-image-tests"
        return httpx.Response(status_code, content=content)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return SourceMaterializer(client=client, user_agent="text-image-tests")


def test_bytes_get_extension_from_content(tmp_path: Path) -> None:
    temps = TempFiles(tmp_path)
    materialized = SourceMaterializer().from_bytes(png_bytes(), temps)
    assert materialized.image_type is ImageType.PNG
    assert materialized.path.suffix == ".png"
    assert materialized.path.read_bytes() == png_bytes()


def test_animated_bytes_become_first_frame_png(tmp_path: Path) -> None:
    temps = TempFiles(tmp_path)
    materialized = SourceMaterializer().from_bytes(gif_bytes(), temps)
    assert materialized.image_type is ImageType.GIF
    assert materialized.path.suffix == ".png"
    with Image.open(materialized.path) as image:
        assert image.format == "PNG"
        assert image.getpixel((0, 0))[:3] == (255, 0, 0)
    # the intermediate GIF is removed as soon as the frame is extracted
    assert temps.paths == [materialized.path]
    assert sorted(tmp_path.iterdir()) == [materialized.path]


def test_url_download_is_sniffed_and_renamed(tmp_path: Path) -> None:
    temps = TempFiles(tmp_path)
    materialized = build_materializer(png_bytes()).from_url("https://example.com/image", temps)
    assert materialized.image_type is ImageType.PNG
    assert materialized.path.suffix == ".png"
    assert materialized.path.read_bytes() == png_bytes()


def test_url_download_is_normalised_to_rgb(tmp_path: Path) -> None:
    temps = TempFiles(tmp_path)
    payload = png_bytes(mode="RGBA", color=(1, 2, 3, 128))
    materialized = build_materializer(payload).from_url("https://example.com/alpha.png", temps)
    with Image.open(materialized.path) as image:
        assert image.mode == "RGB"
        assert image.format == "PNG"


def test_animated_url_download_keeps_first_frame(tmp_path: Path) -> None:
    temps = TempFiles(tmp_path)
    materialized = build_materializer(gif_bytes()).from_url("https://example.com/anim.gif", temps)
    assert materialized.image_type is ImageType.GIF
    with Image.open(materialized.path) as image:
        assert image.format == "PNG"
        assert image.mode == "RGB"
        assert image.getpixel((0, 0)) == (255, 0, 0)
    temps.cleanup()
    assert list(tmp_path.iterdir()) == []


def test_http_error_status_is_fetch_error(tmp_path: Path) -> None:
    with pytest.raises(FetchError) as excinfo:
        build_materializer(b"missing", status_code=404).from_url("https://example.com/x.png", TempFiles(tmp_path))
    assert excinfo.value.code == "FETCH_FAILED"


def test_empty_response_is_fetch_error(tmp_path: Path) -> None:
    with pytest.raises(FetchError):
        build_materializer(b"").from_url("https://example.com/x.png", TempFiles(tmp_path))


def test_transport_failure_is_fetch_error(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    materializer = SourceMaterializer(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(FetchError):
        materializer.from_url("https://example.com/x.png", TempFiles(tmp_path))


def test_non_image_download_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(ConversionFailedError) as excinfo:
        build_materializer(b"<html>nope</html>").from_url("https://example.com/page", TempFiles(tmp_path))
    assert excinfo.value.code == "UNREADABLE_IMAGE"


def test_oversized_animated_bytes_are_unreadable(tmp_path: Path) -> None:
    with pytest.raises(ConversionFailedError) as excinfo:
        SourceMaterializer().from_bytes(decompression_bomb_gif(), TempFiles(tmp_path))
    assert excinfo.value.code == "UNREADABLE_IMAGE"


def test_oversized_download_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(ConversionFailedError) as excinfo:
        build_materializer(decompression_bomb_gif()).from_url("https://example.com/huge.gif", TempFiles(tmp_path))
    assert excinfo.value.code == "UNREADABLE_IMAGE"
