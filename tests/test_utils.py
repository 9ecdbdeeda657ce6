from pathlib import Path

import pytest

from text_image.logging import RunLogEntry, RunLogger, StageTimings
from text_image.utils import TempFiles, atomic_write, generate_run_id


def test_generate_run_id_unique() -> None:
    first = generate_run_id()
    second = generate_run_id()
    assert first != second
    assert first.startswith("run-")


def test_atomic_write_replaces_content(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.txt"
    atomic_write(target, "one")
    atomic_write(target, "two")
    assert target.read_text(encoding="utf-8") == "two"
    assert list(target.parent.iterdir()) == [target]


def test_temp_files_are_removed_on_exit(tmp_path: Path) -> None:
    with TempFiles(tmp_path / "work") as temps:
        created = temps.create(".png")
        adopted = temps.adopt(tmp_path / "work" / "renamed.png")
        adopted.write_bytes(b"x")
        assert created.name.startswith("text-image-")
        assert created.suffix == ".png"
    assert not created.exists()
    assert not adopted.exists()


def test_cleanup_reports_failures(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    temps = TempFiles(tmp_path)
    stuck = temps.create()

    def refuse(self: Path, missing_ok: bool = False) -> None:
        raise PermissionError("busy")

    monkeypatch.setattr(Path, "unlink", refuse)
    assert temps.cleanup() == [stuck]
    monkeypatch.undo()
    assert temps.cleanup() == []
    assert not stuck.exists()


def test_run_logger_appends_json_lines(tmp_path: Path) -> None:
    logger = RunLogger(tmp_path / "logs" / "runs.jsonl")
    entry = RunLogEntry(
        run_id="run-1",
        source="<3 bytes>",
        status="failure",
        image_type="unknown",
        cache_key="abc",
        warnings=["CLEANUP_FAILED:/tmp/x"],
        error_code="CONVERSION_FAILED",
        timings=StageTimings(invoke_ms=1.5),
        output_path=None,
    )
    logger.append(entry)
    logger.append(entry)
    lines = logger.log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert '"invoke_ms": 1.5' in lines[0]
