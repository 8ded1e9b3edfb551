"""Tests for the linker CLI."""
import json
import sys
from unittest.mock import patch

import pytest
from click.testing import CliRunner

import linker.cli as cli_mod
from linker.cli import cli
from linker.config import Config, SelectorConfig
from linker.link_store import JsonLinkStore


@pytest.fixture
def config(links_path, monkeypatch):
    """Config pointing at the sample index with fake selector and opener."""
    config = Config(
        selector=SelectorConfig(command=["fake-selector"], timeout=5),
        index_dir=links_path.parent,
        opener="fake-opener",
    )
    monkeypatch.setattr("linker.config._config", config)
    return config


@pytest.fixture
def runner(config, monkeypatch):
    """Click test runner with a fresh store."""
    monkeypatch.setattr(cli_mod, "_store", None)
    return CliRunner()


def stored_links(links_path):
    return JsonLinkStore(links_path).load()


def pick_url(url):
    """Stand-in for select_link that chooses the first result with url."""
    def pick(results, command, timeout=None):
        return next(s for s in results if s.link.url == url)
    return pick


class TestSearchPrint:
    def test_browse_all(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "search" in result.output

        result = runner.invoke(cli, ["search", "--print"])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 3
        assert lines[0].split("\t")[1] == "https://go.dev/blog"

    def test_terms_without_command_name(self, runner):
        result = runner.invoke(cli, ["python", "--print"])
        assert result.exit_code == 0
        first = result.output.splitlines()[0]
        assert first.split("\t")[1] == "https://docs.python.org"
        assert first.split("\t")[2] == "[python,docs]"

    def test_no_matches(self, runner, tmp_path, monkeypatch):
        monkeypatch.setattr("linker.config._config", Config(index_dir=tmp_path / "empty"))
        result = runner.invoke(cli, ["search", "anything"])
        assert result.exit_code == 0
        assert "no matches" in result.output

    def test_bad_weights_exits_nonzero(self, runner, links_path):
        (links_path.parent / "weights.json").write_text('{"weights": {"tag": 1}}')
        result = runner.invoke(cli, ["search", "--print", "go"])
        assert result.exit_code == 1

    def test_unreadable_weights_exits_with_message(self, runner, links_path):
        (links_path.parent / "weights.json").mkdir()
        result = runner.invoke(cli, ["search", "--print", "go"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid weights file" in result.output


class TestSearchSelect:
    def test_opens_selection_and_records_open(self, runner, links_path):
        with patch("linker.cli.select_link", side_effect=pick_url("https://go.dev/blog")) as select, \
             patch("linker.cli.open_url", return_value=True) as opener:
            result = runner.invoke(cli, ["go"])

        assert result.exit_code == 0
        select.assert_called_once()
        assert select.call_args[0][1] == ["fake-selector"]
        opener.assert_called_once_with("https://go.dev/blog", "fake-opener")

        go = next(l for l in stored_links(links_path) if l.url == "https://go.dev/blog")
        assert go.open_count == 11
        assert go.last_opened is not None

    def test_abort_does_nothing(self, runner, links_path):
        before = links_path.read_text()
        with patch("linker.cli.select_link", return_value=None), \
             patch("linker.cli.open_url") as opener:
            result = runner.invoke(cli, ["go"])

        assert result.exit_code == 0
        opener.assert_not_called()
        assert links_path.read_text() == before

    def test_failed_launch_not_recorded(self, runner, links_path):
        before = links_path.read_text()
        with patch("linker.cli.select_link", side_effect=pick_url("https://go.dev/blog")), \
             patch("linker.cli.open_url", return_value=False):
            result = runner.invoke(cli, ["go"])

        assert result.exit_code == 0
        assert links_path.read_text() == before

    def test_selector_unavailable_exits_cleanly(self, runner):
        result = runner.invoke(cli, ["go"])
        assert result.exit_code == 0

    def test_real_selector_process(self, runner, config, monkeypatch):
        pick_first = [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.readline())"]
        monkeypatch.setattr(config.selector, "command", pick_first)
        with patch("linker.cli.open_url", return_value=True) as opener:
            result = runner.invoke(cli, ["python"])

        assert result.exit_code == 0
        opener.assert_called_once_with("https://docs.python.org", "fake-opener")

    def test_duplicate_url_records_chosen_link(self, runner, config, links_path, monkeypatch):
        store = json.loads(links_path.read_text())
        store["links"].append({
            "id": "1700000000000000004",
            "url": "https://go.dev/blog",
            "title": "Go Blog mirror",
            "tags": ["mirror"],
            "open_count": 0,
        })
        links_path.write_text(json.dumps(store))

        pick_last = [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().splitlines()[-1] + '\\n')"]
        monkeypatch.setattr(config.selector, "command", pick_last)
        with patch("linker.cli.open_url", return_value=True) as opener:
            result = runner.invoke(cli, ["search"])

        assert result.exit_code == 0
        opener.assert_called_once_with("https://go.dev/blog", "fake-opener")

        by_id = {l.id: l for l in stored_links(links_path)}
        assert by_id["1700000000000000004"].open_count == 1
        assert by_id["1700000000000000001"].open_count == 10


class TestAdd:
    def test_add_basic(self, runner, links_path):
        result = runner.invoke(cli, [
            "add", "https://new.com",
            "--title", "New Site",
            "--comment", "worth reading",
            "--tag", "News",
            "--tag", "daily,tech",
            "--label", "src=rss",
            "--label", "lang=en",
        ])
        assert result.exit_code == 0
        assert "added: https://new.com" in result.output

        added = stored_links(links_path)[-1]
        assert added.url == "https://new.com"
        assert added.title == "New Site"
        assert added.comment == "worth reading"
        assert added.tags == ["news", "daily", "tech"]
        assert added.labels == {"src": "rss", "lang": "en"}
        assert added.open_count == 0
        assert added.last_opened is None

    def test_add_keeps_existing_links(self, runner, links_path):
        runner.invoke(cli, ["add", "https://new.com"])
        assert len(stored_links(links_path)) == 4

    def test_add_to_fresh_directory(self, runner, tmp_path, monkeypatch):
        index_dir = tmp_path / "fresh" / ".linker"
        monkeypatch.setattr("linker.config._config", Config(index_dir=index_dir))
        result = runner.invoke(cli, ["add", "https://a.com", "-t", "x"])
        assert result.exit_code == 0
        assert stored_links(index_dir / "links.json")[0].tags == ["x"]

    def test_add_write_failure_exits_nonzero(self, runner, tmp_path, monkeypatch):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setattr("linker.config._config", Config(index_dir=blocker))
        result = runner.invoke(cli, ["add", "https://a.com"])
        assert result.exit_code == 1
        assert "added:" not in result.output

    def test_add_fetches_title(self, runner, links_path):
        async def fake_fetch(url):
            return "Fetched Title"

        with patch("linker.cli.fetch_page_title", side_effect=fake_fetch):
            result = runner.invoke(cli, ["add", "https://new.com", "--fetch-title"])

        assert result.exit_code == 0
        assert stored_links(links_path)[-1].title == "Fetched Title"

    def test_explicit_title_skips_fetch(self, runner, links_path):
        with patch("linker.cli.fetch_page_title") as fetch:
            runner.invoke(cli, ["add", "https://new.com", "--title", "Mine", "--fetch-title"])
        fetch.assert_not_called()
        assert stored_links(links_path)[-1].title == "Mine"
