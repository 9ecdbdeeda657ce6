from pathlib import Path

from conftest import apng_bytes, gif_bytes, png_bytes

from text_image.detection import ImageType, describe, identify, sniff_file


def test_identify_common_signatures() -> None:
    assert identify(png_bytes()) is ImageType.PNG
    assert identify(b"\xff\xd8\xff\xe0" + b"\x00" * 16) is ImageType.JPEG
    assert identify(gif_bytes()) is ImageType.GIF
    assert identify(b"RIFF\x00\x00\x00\x00WEBPVP8 ") is ImageType.WEBP
    assert identify(b"II*\x00" + b"\x00" * 8) is ImageType.TIFF
    assert identify(b"\x00\x00\x01\x00" + b"\x00" * 8) is ImageType.ICO
    assert identify(b"BM" + b"\x00" * 20) is ImageType.BMP


def test_identify_animated_png() -> None:
    assert identify(apng_bytes()) is ImageType.APNG
    assert ImageType.APNG.animated
    assert not ImageType.PNG.animated


def test_unknown_data_has_no_extension() -> None:
    result = describe(b"<html><body>not an image</body></html>")
    assert result.image_type is ImageType.UNKNOWN
    assert result.extension == ""
    assert result.mime_type == "application/octet-stream"


def test_sniff_file_reads_header(tmp_path: Path) -> None:
    target = tmp_path / "no-extension"
    target.write_bytes(gif_bytes())
    assert sniff_file(target) is ImageType.GIF
    assert describe(target.read_bytes()).extension == ".gif"
