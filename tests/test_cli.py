"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from jellyfin_organizer.cli import cli

ENV_VARS = (
    "JELLYFIN_MOVIES_FOLDER",
    "JELLYFIN_SHOWS_FOLDER",
    "SOURCE_FOLDER",
    "ORGANIZER_LLM_PROVIDER",
    "ORGANIZER_LLM_MODEL",
    "ORGANIZER_LLM_BASE_URL",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "LLM_API_KEY",
)


@pytest.fixture
def runner(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


@pytest.fixture
def library(tmp_path):
    base = tmp_path.resolve()
    for name in ("movies", "shows", "source"):
        (base / name).mkdir()
    (base / "source" / "film.mkv").write_bytes(b"video")
    return base


@pytest.fixture
def env(library):
    return {
        "JELLYFIN_MOVIES_FOLDER": str(library / "movies"),
        "JELLYFIN_SHOWS_FOLDER": str(library / "shows"),
        "SOURCE_FOLDER": str(library / "source"),
    }


class TestCli:
    """Smoke tests for the CLI commands."""

    def test_providers(self, runner):
        result = runner.invoke(cli, ["providers"])
        assert result.exit_code == 0
        assert "anthropic" in result.output
        assert "ollama" in result.output

    def test_tools(self, runner):
        result = runner.invoke(cli, ["tools"])
        assert result.exit_code == 0
        assert "rename_jellyfin_media" in result.output

    def test_tools_json(self, runner):
        result = runner.invoke(cli, ["tools", "--json"])
        assert result.exit_code == 0
        names = [tool["name"] for tool in json.loads(result.output)]
        assert "search_imdb" in names

    def test_organize_missing_configuration(self, runner):
        """Test that missing library folders stop the run before any model call."""
        result = runner.invoke(cli, ["organize", "/scan/film.mkv"])
        assert result.exit_code == 1
        assert "JELLYFIN_MOVIES_FOLDER" in result.output

    def test_organize_missing_api_key(self, runner, library, env):
        result = runner.invoke(cli, ["organize", str(library / "source" / "film.mkv")], env=env)
        assert result.exit_code == 1
        assert "ANTHROPIC_API_KEY" in result.output

    def test_organize_with_dummy_provider(self, runner, library, env):
        """Test a full session that ends at end of input."""
        result = runner.invoke(
            cli,
            ["organize", str(library / "source" / "film.mkv"), "--provider", "dummy"],
            env=env,
            input="thanks\n",
        )
        assert result.exit_code == 0, result.output
        assert "Nothing left to do." in result.output
        assert "Done." in result.output

    def test_organize_from_config_file(self, runner, library, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(
            f"library:\n  movies: {library / 'movies'}\n  shows: {library / 'shows'}\n"
            "llm:\n  provider: dummy\n"
        )
        target = library / "movies" / "film.mkv"
        result = runner.invoke(cli, ["organize", str(target), "-c", str(config)], input="")
        assert result.exit_code == 0, result.output

    def test_organize_input_outside_library(self, runner, library, tmp_path):
        """Test that an input the tools could never read stops the run."""
        env = {
            "JELLYFIN_MOVIES_FOLDER": str(library / "movies"),
            "JELLYFIN_SHOWS_FOLDER": str(library / "shows"),
        }
        result = runner.invoke(
            cli,
            ["organize", str(library / "source" / "film.mkv"), "--provider", "dummy"],
            env=env,
        )
        assert result.exit_code == 1
        assert "SOURCE_FOLDER" in result.output
        assert "Nothing left to do." not in result.output

    def test_organize_interrupted(self, runner, library, env, monkeypatch):
        """Test that Ctrl+C ends the session without a traceback."""
        from jellyfin_organizer.cli import main

        def interrupted(config, prompt):
            raise KeyboardInterrupt

        monkeypatch.setattr(main, "_run_organize", interrupted)
        result = runner.invoke(
            cli,
            ["organize", str(library / "source" / "film.mkv"), "--provider", "dummy"],
            env=env,
        )
        assert result.exit_code == 0, result.output
        assert "Interrupted." in result.output
        assert "Done." in result.output
