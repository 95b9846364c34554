# File: tests/test_cli.py
"""CLI tests with click.testing.CliRunner.

The engine is replaced by a stub so no command touches the network.
"""
import importlib
import json
import logging
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

cli_module = importlib.import_module("docmunch.cli")
from docmunch.cli import EXIT_INTERRUPTED, cli
from docmunch.config import CONFIG_FILENAME
from docmunch.crawler.models import CrawledPage, CrawlResult, CrawlStatus
from docmunch.engine import Engine, SourceReport
from docmunch.errors import CrawlAborted, FetchError
from docmunch.logger import LOGGER_NAME
from docmunch.pipeline.extractor import ExtractResult
from docmunch.platforms import get_strategy
from docmunch.registry import PullReport, RegistrySource

PAGE_HTML = "<html><body><article><h1>Guide</h1><p>Crawled body</p></article></body></html>"


class StubEngine(Engine):
    calls = []
    fail_with = None
    status = CrawlStatus.COMPLETED

    async def fetch_single(self, url):
        self.calls.append(("fetch_single", url))
        if self.fail_with is not None:
            raise self.fail_with
        return ExtractResult("<p>x</p>", "Stub Title", "generic"), "# Stub Title\n\nHello from stub\n"

    async def crawl_site(self, url, max_depth):
        self.calls.append(("crawl_site", url, max_depth))
        if self.fail_with is not None:
            raise self.fail_with
        result = CrawlResult([CrawledPage(url, PAGE_HTML)], "/", self.status)
        return result, get_strategy("generic"), PAGE_HTML

    async def update_source(self, source, config, config_dir, *, force=False):
        self.calls.append(("update_source", source.name, force))
        return SourceReport(source.name, Path(config_dir) / config.output_dir / source.output, 3, 1, False)


@pytest.fixture(autouse=True)
def stub_engine(monkeypatch):
    StubEngine.calls = []
    StubEngine.fail_with = None
    StubEngine.status = CrawlStatus.COMPLETED
    monkeypatch.setattr(cli_module, "Engine", StubEngine)
    return StubEngine


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to the runner's captured stderr."""
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()


@pytest.fixture()
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def test_version_option(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "docmunch" in result.output


def test_fetch_to_stdout(runner, stub_engine):
    result = runner.invoke(cli, ["fetch", "https://docs.example.com/intro"])
    assert result.exit_code == 0, result.output
    assert "Hello from stub" in result.output
    assert "source: https://docs.example.com/intro" in result.output
    assert stub_engine.calls == [("fetch_single", "https://docs.example.com/intro")]


def test_fetch_to_file(runner, tmp_path):
    result = runner.invoke(cli, ["fetch", "https://docs.example.com/intro", "-o", "out/doc.md"])
    assert result.exit_code == 0, result.output
    text = (tmp_path / "out" / "doc.md").read_text(encoding="utf-8")
    assert "title: Stub Title" in text
    assert "Hello from stub" in text


def test_fetch_rejects_invalid_url(runner, stub_engine):
    result = runner.invoke(cli, ["fetch", "not-a-url"])
    assert result.exit_code == 1
    assert "Invalid URL" in result.output
    assert stub_engine.calls == []


def test_fetch_error_exits_nonzero(runner, stub_engine):
    stub_engine.fail_with = FetchError("https://docs.example.com/x", "HTTP 404")
    result = runner.invoke(cli, ["fetch", "https://docs.example.com/x"])
    assert result.exit_code == 1
    assert "HTTP 404" in result.output


def test_fetch_crawl_stitches_pages(runner, stub_engine, tmp_path):
    result = runner.invoke(cli, ["fetch", "https://docs.example.com/", "--crawl", "--max-depth", "1", "-o", "all.md"])
    assert result.exit_code == 0, result.output
    assert stub_engine.calls == [("crawl_site", "https://docs.example.com/", 1)]
    assert "Crawled 1 page(s)" in result.output
    text = (tmp_path / "all.md").read_text(encoding="utf-8")
    assert "## Guide" in text
    assert "Crawled body" in text


def test_fetch_crawl_partial_still_exits_zero(runner, stub_engine):
    stub_engine.status = CrawlStatus.PARTIAL
    result = runner.invoke(cli, ["fetch", "https://docs.example.com/", "--crawl", "-o", "all.md"])
    assert result.exit_code == 0, result.output
    assert "(interrupted)" in result.output


def test_aborted_crawl_exits_130(runner, stub_engine, tmp_path):
    stub_engine.fail_with = CrawlAborted(4)
    result = runner.invoke(cli, ["fetch", "https://docs.example.com/", "--crawl", "-o", "all.md"])
    assert result.exit_code == EXIT_INTERRUPTED
    assert "4 page(s) discarded" in result.output
    assert not (tmp_path / "all.md").exists()


def test_add_creates_config_and_list_shows_it(runner, tmp_path):
    result = runner.invoke(cli, ["add", "https://www.docs.example.com/guide", "--crawl", "--max-depth", "3"])
    assert result.exit_code == 0, result.output

    data = yaml.safe_load((tmp_path / CONFIG_FILENAME).read_text(encoding="utf-8"))
    assert data["output_dir"] == ".ai/docs"
    assert data["sources"] == [
        {
            "name": "docs-example-com",
            "url": "https://www.docs.example.com/guide",
            "crawl": True,
            "max_depth": 3,
            "output": "docs-example-com/",
        }
    ]

    listed = runner.invoke(cli, ["list"])
    assert listed.exit_code == 0
    assert "docs-example-com (crawl, depth: 3)" in listed.output
    assert "https://www.docs.example.com/guide" in listed.output


def test_add_same_name_replaces_source(runner, tmp_path):
    runner.invoke(cli, ["add", "https://a.dev/docs", "--name", "a"])
    runner.invoke(cli, ["add", "https://a.dev/v2", "--name", "a", "-o", "a-v2.md"])
    data = yaml.safe_load((tmp_path / CONFIG_FILENAME).read_text(encoding="utf-8"))
    assert len(data["sources"]) == 1
    assert data["sources"][0]["output"] == "a-v2.md"


def test_list_without_config(runner):
    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0
    assert "No .docmunch.yaml found" in result.output


def test_update_without_config_fails(runner):
    result = runner.invoke(cli, ["update"])
    assert result.exit_code == 1
    assert "No .docmunch.yaml found" in result.output


def test_update_runs_each_source(runner, stub_engine):
    runner.invoke(cli, ["add", "https://a.dev/docs", "--name", "a"])
    runner.invoke(cli, ["add", "https://b.dev/docs", "--name", "b"])

    result = runner.invoke(cli, ["update", "--force"])
    assert result.exit_code == 0, result.output
    assert stub_engine.calls == [("update_source", "a", True), ("update_source", "b", True)]
    assert '(1 written) (2 unchanged)' in result.output


def test_update_unknown_name_fails(runner):
    runner.invoke(cli, ["add", "https://a.dev/docs", "--name", "a"])
    result = runner.invoke(cli, ["update", "--name", "zzz"])
    assert result.exit_code == 1
    assert 'Source "zzz" not found' in result.output


def test_broken_config_reported(runner, tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text("sources: [\n", encoding="utf-8")
    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 1
    assert "Failed to load config" in result.output


def _fake_sources(calls):
    async def fake(base_url, token=None, settings=None):
        calls.append((base_url, token))
        return [
            RegistrySource(
                name="acme", url="https://docs.acme.dev", platform="mintlify",
                display_name="Acme Docs", description="Acme API reference",
                page_count=12, total_tokens=48200,
            ),
            RegistrySource(name="bare", url="https://bare.dev"),
        ]
    return fake


def test_registry_lists_sources(runner, monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module, "fetch_registry_sources", _fake_sources(calls))
    monkeypatch.setenv("DOCMUNCH_REGISTRY_URL", "https://registry.test/")
    monkeypatch.setenv("DOCMUNCH_TOKEN", "s3cret")

    result = runner.invoke(cli, ["registry"])
    assert result.exit_code == 0, result.output
    assert calls == [("https://registry.test", "s3cret")]
    assert "2 sources available" in result.output
    assert "Name:     Acme Docs" in result.output
    assert "Platform: mintlify (12 pages) ~48k tokens" in result.output
    assert "Acme API reference" in result.output
    assert "Platform: generic\n" in result.output
    assert "docmunch pull <name>" in result.output


def test_registry_json_output(runner, monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module, "fetch_registry_sources", _fake_sources(calls))

    result = runner.invoke(cli, ["registry", "--json", "--registry-url", "https://r.test", "--token", "t"])
    assert result.exit_code == 0, result.output
    assert calls == [("https://r.test", "t")]
    data = json.loads(result.output)
    assert [item["name"] for item in data] == ["acme", "bare"]
    assert data[0]["total_tokens"] == 48200
    assert "display_name" not in data[1]


def test_registry_fetch_error_exits_nonzero(runner, monkeypatch):
    async def failing(base_url, token=None, settings=None):
        raise FetchError(f"{base_url}/api/sources", "HTTP 503")

    monkeypatch.setattr(cli_module, "fetch_registry_sources", failing)
    result = runner.invoke(cli, ["registry", "--registry-url", "https://r.test"])
    assert result.exit_code == 1
    assert "HTTP 503" in result.output


def _fake_pull(calls):
    async def fake(name, output_dir, root_dir, base_url, token=None, settings=None, *, force=False):
        calls.append((name, Path(output_dir), Path(root_dir), base_url, force))
        return PullReport(name, "https://docs.acme.dev", Path(output_dir), 4, 3)
    return fake


def test_pull_without_config_uses_default_dir(runner, monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(cli_module, "pull_package", _fake_pull(calls))

    result = runner.invoke(cli, ["pull", "acme", "--registry-url", "https://r.test", "--force"])
    assert result.exit_code == 0, result.output
    root = (tmp_path / ".ai" / "docs").resolve()
    name, output_dir, root_dir, base_url, force = calls[0]
    assert (name, base_url, force) == ("acme", "https://r.test", True)
    assert root_dir.resolve() == root
    assert output_dir.resolve() == root / "acme"
    assert "Pulled 4 page(s)" in result.output
    assert "(3 written)" in result.output
    assert not (tmp_path / CONFIG_FILENAME).exists()


def test_pull_records_source_in_config(runner, monkeypatch, tmp_path):
    runner.invoke(cli, ["add", "https://b.dev/docs", "--name", "b"])
    calls = []
    monkeypatch.setattr(cli_module, "pull_package", _fake_pull(calls))

    result = runner.invoke(cli, ["pull", "acme", "--registry-url", "https://r.test"])
    assert result.exit_code == 0, result.output
    assert calls[0][4] is False

    data = yaml.safe_load((tmp_path / CONFIG_FILENAME).read_text(encoding="utf-8"))
    assert [s["name"] for s in data["sources"]] == ["b", "acme"]
    acme = data["sources"][1]
    assert acme["url"] == "https://docs.acme.dev"
    assert acme["crawl"] is True
    assert acme["output"] == "acme/"


def test_pull_unknown_package_exits_nonzero(runner, monkeypatch, tmp_path):
    async def failing(name, output_dir, root_dir, base_url, token=None, settings=None, *, force=False):
        raise FetchError(f"{base_url}/api/pull/{name}", "HTTP 404")

    monkeypatch.setattr(cli_module, "pull_package", failing)
    result = runner.invoke(cli, ["pull", "nope", "--registry-url", "https://r.test"])
    assert result.exit_code == 1
    assert "HTTP 404" in result.output
    assert not (tmp_path / CONFIG_FILENAME).exists()


def test_pull_rejects_path_like_name(runner, monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module, "pull_package", _fake_pull(calls))
    result = runner.invoke(cli, ["pull", "../etc"])
    assert result.exit_code == 1
    assert "Invalid package name" in result.output
    assert calls == []
