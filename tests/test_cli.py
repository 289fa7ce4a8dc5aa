"""Tests for the bibleplan CLI, using click's CliRunner."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from bibleplan import __main__ as cli_module
from bibleplan import __version__
from bibleplan.provider import ProviderError
from bibleplan.service import BibleService


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_args(tmp_path):
    """Point the CLI at a config file that does not exist."""
    return ["--config", str(tmp_path / "missing.yaml")]


@pytest.fixture
def fake_service(monkeypatch, make_provider):
    """Route network commands through a fake provider; returns the provider."""
    provider = make_provider()
    monkeypatch.setattr(
        cli_module,
        "build_service",
        lambda settings: BibleService(settings, provider=provider),
    )
    return provider


class TestGroup:
    """Tests for group-level options."""

    def test_version(self, runner):
        result = runner.invoke(cli_module.cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_bad_config_exits_2(self, runner, tmp_path):
        """Invalid configuration exits with status 2."""
        path = tmp_path / "config.yaml"
        path.write_text("bogus: 1\n", encoding="utf-8")

        result = runner.invoke(
            cli_module.cli, ["--config", str(path), "resolve", "Fil."]
        )

        assert result.exit_code == 2
        assert "Configuration error" in result.output


class TestToday:
    """Tests for the today command."""

    def test_explicit_date(self, runner, config_args):
        """--date prints that day's chapter."""
        result = runner.invoke(
            cli_module.cli, [*config_args, "today", "--date", "2026-02-20"]
        )

        assert result.exit_code == 0
        assert "2026-02-20: Exodo 1" in result.output
        assert "Next reading" not in result.output

    def test_today_shows_next_reading(self, runner, config_args):
        """Without --date the next reading time is shown."""
        result = runner.invoke(cli_module.cli, [*config_args, "today"])

        assert result.exit_code == 0
        assert "Next reading at" in result.output

    def test_start_date_from_config(self, runner, tmp_path):
        """The plan start date is read from the config file."""
        path = tmp_path / "config.yaml"
        path.write_text("start_date: 2026-02-20\n", encoding="utf-8")

        result = runner.invoke(
            cli_module.cli, ["--config", str(path), "today", "--date", "2026-02-20"]
        )

        assert "Genesis 1" in result.output


class TestResolve:
    """Tests for the resolve command."""

    def test_known_abbreviation(self, runner, config_args):
        """Resolving prints the canonical name and code."""
        result = runner.invoke(cli_module.cli, [*config_args, "resolve", "Fil."])

        assert result.exit_code == 0
        assert "Filipenses (PHP)" in result.output

    def test_unknown_book(self, runner, config_args):
        """Unknown books exit with status 1 and a best guess."""
        result = runner.invoke(cli_module.cli, [*config_args, "resolve", "Tobías"])

        assert result.exit_code == 1
        assert "Unknown book" in result.output
        assert "Tobias" in result.output


class TestNetworkCommands:
    """Tests for chapter, verses and lookup."""

    def test_chapter(self, runner, config_args, fake_service):
        """A chapter is printed under its reference."""
        result = runner.invoke(cli_module.cli, [*config_args, "chapter", "Jn.", "3"])

        assert result.exit_code == 0
        assert "Juan 3" in result.output
        assert "[1] juan 3 primer verso" in result.output
        assert fake_service.calls == [("juan", 3)]

    def test_chapter_failure(self, runner, config_args, fake_service):
        """Fetch failures print the error and exit with status 1."""
        fake_service.error = ProviderError("Sin red")

        result = runner.invoke(cli_module.cli, [*config_args, "chapter", "Juan", "3"])

        assert result.exit_code == 1
        assert "Error cargando lectura." in result.output

    def test_verses(self, runner, config_args, fake_service):
        result = runner.invoke(
            cli_module.cli, [*config_args, "verses", "1 Cor", "13", "2"]
        )

        assert result.exit_code == 0
        assert "1 Corintios 13:2" in result.output
        assert "[2] 1 corintios 13 segundo verso" in result.output

    def test_lookup(self, runner, config_args, fake_service):
        result = runner.invoke(cli_module.cli, [*config_args, "lookup", "Juan 3:1"])

        assert result.exit_code == 0
        assert "[1] juan 3 primer verso" in result.output

    def test_lookup_unknown_book(self, runner, config_args, fake_service):
        """Unknown books are reported without a fetch."""
        result = runner.invoke(cli_module.cli, [*config_args, "lookup", "Tobías 1"])

        assert result.exit_code == 1
        assert "no fue encontrado" in result.output
        assert fake_service.calls == []

    def test_provider_closed_after_command(self, runner, config_args, fake_service):
        """The provider is closed when a command finishes."""
        runner.invoke(cli_module.cli, [*config_args, "chapter", "Juan", "3"])
        assert fake_service.closed


class TestPlan:
    """Tests for the plan command."""

    def test_month(self, runner, config_args):
        """--month limits the table to one month."""
        result = runner.invoke(cli_module.cli, [*config_args, "plan", "2026", "-m", "2"])

        assert result.exit_code == 0
        assert "02-20" in result.output
        assert "Exodo 1" in result.output
        assert "03-01" not in result.output

    def test_invalid_month(self, runner, config_args):
        result = runner.invoke(
            cli_module.cli, [*config_args, "plan", "2026", "--month", "13"]
        )
        assert result.exit_code == 2
