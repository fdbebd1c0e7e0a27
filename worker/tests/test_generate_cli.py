from __future__ import annotations

import sys
from pathlib import Path

import pytest

from stylesmith_worker.generate import _run, main
from stylesmith_worker.services.formats import MAX_MODE_HEADER


@pytest.mark.asyncio
async def test_generate_cli_prints_prompt_and_metadata(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    config_dir = tmp_path / "config"

    await _run(
        "smooth late night jazz",
        seed=42,
        max_mode=True,
        genre=None,
        genre_count=None,
        arc=None,
        title=True,
        config_dir=config_dir,
    )

    captured = capsys.readouterr()
    assert captured.out.startswith(MAX_MODE_HEADER)
    assert "seed          : 42" in captured.out
    assert "bpm_range     : between 80 and 160" in captured.out
    assert "title_source  : deterministic" in captured.out
    assert config_dir.exists()


@pytest.mark.asyncio
async def test_generate_cli_clamps_genre_count(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    await _run(
        "anthemic rock",
        seed=1,
        max_mode=False,
        genre="rock",
        genre_count=9,
        arc=["isolation", "hope", "triumph"],
        title=False,
        config_dir=tmp_path,
    )

    out = capsys.readouterr().out
    components = next(line for line in out.splitlines() if line.startswith("components"))
    assert len(components.split(":", 1)[1].split(",")) == 4
    assert "key           :" in out


def test_main_parses_arguments(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "stylesmith-generate",
            "--description",
            "dreamy synthwave drive",
            "--seed",
            "7",
            "--max-mode",
            "--config-dir",
            str(tmp_path),
        ],
    )
    main()
    out = capsys.readouterr().out
    assert "seed          : 7" in out
    assert "display_genre : Synthwave" in out
