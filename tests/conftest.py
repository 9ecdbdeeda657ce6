from __future__ import annotations

import io
import json
import struct
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest
from PIL import Image

from text_image.config import AppConfig, ConverterConfig, RuntimeConfig

FAKE_CONVERTER = '''#!{python}
import json
import os
import sys
import time

args = sys.argv[1:]
path = args[0]
header = ""
if os.path.exists(path):
    with open(path, "rb") as handle:
        header = handle.read(8).hex()
log = os.environ.get("FAKE_CONVERTER_LOG")
if log:
    with open(log, "a", encoding="utf-8") as handle:
        handle.write(json.dumps({{
            "argv": args,
            "colorterm": os.environ.get("COLORTERM"),
            "exists": os.path.exists(path),
            "header": header,
        }}) + "\\n")
time.sleep(float(os.environ.get("FAKE_CONVERTER_DELAY", "0")))
mode = os.environ.get("FAKE_CONVERTER_MODE", "ok")
if mode == "fail":
    sys.stderr.write("cannot decode image\\n")
    sys.exit(3)
if mode == "empty":
    sys.exit(0)
if not os.path.exists(path):
    sys.stderr.write("no such file\\n")
    sys.exit(1)
width = int(args[args.index("--width") + 1]) if "--width" in args else 8
rows = int(args[args.index("--height") + 1]) if "--height" in args else 3
glyph = "@" if "--complex" in args else "#"
for _ in range(rows):
    line = glyph * width
    if "--color" in args:
        sys.stdout.write("\\x1b[38;2;255;0;0m" + line + "\\x1b[0m\\n")
    else:
        sys.stdout.write(line + "\\n")
'''


@dataclass
class FakeConverter:
    path: Path
    log: Path

    def calls(self) -> list[dict[str, object]]:
        if not self.log.exists():
            return []
        return [json.loads(line) for line in self.log.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def fake_converter(tmp_path: Path) -> FakeConverter:
    script = tmp_path / "bin" / "fake-converter"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(FAKE_CONVERTER.format(python=sys.executable), encoding="utf-8")
    script.chmod(0o755)
    return FakeConverter(path=script, log=tmp_path / "calls.jsonl")


def build_config(tmp_path: Path, converter: FakeConverter, **env: str) -> AppConfig:
    converter_env = {"COLORTERM": "truecolor", "FAKE_CONVERTER_LOG": str(converter.log)}
    converter_env.update(env)
    return AppConfig(
        converter=ConverterConfig(binary=str(converter.path), env=converter_env),
        runtime=RuntimeConfig(temp_dir=tmp_path / "work"),
    )


def png_bytes(size: tuple[int, int] = (4, 4), mode: str = "RGB", color: object = (10, 20, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def gif_bytes() -> bytes:
    frames = [Image.new("RGB", (8, 8), color) for color in ((255, 0, 0), (0, 255, 0), (0, 0, 255))]
    buffer = io.BytesIO()
    frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:], duration=100, loop=0)
    return buffer.getvalue()


def apng_bytes() -> bytes:
    frames = [Image.new("RGBA", (4, 4), color) for color in ((255, 0, 0, 255), (0, 0, 255, 255))]
    buffer = io.BytesIO()
    frames[0].save(buffer, format="PNG", save_all=True, append_images=frames[1:], duration=100)
    return buffer.getvalue()


def decompression_bomb_gif() -> bytes:
    """A GIF whose header declares 65535x65535 pixels, far past Pillow's size limit."""

    header = b"GIF89a" + struct.pack("<HH", 65535, 65535) + b"\x00\x00\x00"
    descriptor = b"," + struct.pack("<HHHH", 0, 0, 65535, 65535) + b"\x00"
    return header + descriptor + b"\x08\x02\x4c\x01\x00;"
