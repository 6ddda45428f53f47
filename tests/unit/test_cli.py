"""Unit tests for the command-line interface in rechtspraak.cli.commands.

``main()`` is driven end to end with ``rechtspraak.main._build_all``
patched to return the fake-provider graph from ``tests.conftest``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from rechtspraak.cli.commands import _build_parser, main
from rechtspraak.utils.errors import ConfigurationError
from rechtspraak.utils.temp_files import TempFileSweeper
from tests.conftest import SAMPLE_RULING, build_assistant


def _cli_components(tmp_path: Path) -> dict[str, Any]:
    components = build_assistant(tmp_path / "artifacts")
    components["sweeper"] = TempFileSweeper(tmp_path / "artifacts")
    components["http_client"] = httpx.AsyncClient()
    components["provider_registry"] = {
        "llm": True,
        "llm_name": "fake-llm",
        "embedding": True,
        "embedding_name": "fake-embedding",
        "vector_store_name": "memory",
    }
    return components


class TestParser:
    def test_ask_options(self) -> None:
        args = _build_parser().parse_args(
            ["ask", "Wat is een dringende reden?", "--session", "s1", "--max-results", "3"]
        )
        assert args.command == "ask"
        assert args.question == "Wat is een dringende reden?"
        assert args.session == "s1"
        assert args.max_results == 3
        assert args.document_id is None

    def test_search_limit(self) -> None:
        args = _build_parser().parse_args(["search", "huur", "--limit", "7"])
        assert (args.query, args.limit) == ("huur", 7)

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().out


class TestCommands:
    def test_ingest(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        components = _cli_components(tmp_path)
        link = components["file_source"].add("hr2020", "Arrest Hoge Raad.txt", SAMPLE_RULING.encode())

        with patch("rechtspraak.main._build_all", return_value=components):
            exit_code = main(["ingest", link])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Status:       completed" in out
        assert "Arrest Hoge Raad.txt" in out

    def test_ingest_failure_exit_code(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        components = _cli_components(tmp_path)
        link = components["file_source"].add("leeg", "leeg.txt", b"")

        with patch("rechtspraak.main._build_all", return_value=components):
            exit_code = main(["ingest", link])

        assert exit_code == 1
        assert "no extractable text" in capsys.readouterr().err

    def test_invalid_link(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("rechtspraak.main._build_all", return_value=_cli_components(tmp_path)):
            exit_code = main(["ingest", "https://example.com/file"])

        assert exit_code == 1
        assert "Error:" in capsys.readouterr().err

    def test_ask(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        components = _cli_components(tmp_path)

        with patch("rechtspraak.main._build_all", return_value=components):
            exit_code = main(["ask", "Wat is ontslag op staande voet?", "--session", "cli-1"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert components["llm"].answer in out
        assert "Vervolgvragen:" in out
        assert "Session: cli-1 (turn 1)" in out

    def test_search_without_results(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("rechtspraak.main._build_all", return_value=_cli_components(tmp_path)):
            exit_code = main(["search", "huurovereenkomst"])

        assert exit_code == 0
        assert "No results." in capsys.readouterr().out

    def test_stats(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("rechtspraak.main._build_all", return_value=_cli_components(tmp_path)):
            exit_code = main(["stats"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Vector store:     memory" in out
        assert "Stored vectors:   0" in out

    def test_configuration_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(
            "rechtspraak.main._build_all",
            side_effect=ConfigurationError("Unknown LLM provider: 'x'"),
        ):
            assert main(["stats"]) == 1
        assert "Unknown LLM provider" in capsys.readouterr().err
