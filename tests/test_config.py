# File: tests/test_config.py
from pathlib import Path

import pytest
from pydantic import ValidationError

from docmunch.config import (
    CONFIG_FILENAME,
    CrawlSettings,
    DocmunchConfig,
    SourceConfig,
    add_source,
    load_config,
    save_config,
)


def write_config(directory: Path, content: str) -> Path:
    path = directory / CONFIG_FILENAME
    path.write_text(content, encoding="utf-8")
    return path


VALID = """\
version: 1
output_dir: .ai/docs
sources:
  - name: react
    url: https://react.dev/learn
    crawl: true
    max_depth: 3
    output: react/
  - name: stripe
    url: https://docs.stripe.com/api
    output: stripe.md
"""


def test_load_config_found_in_parent(tmp_path):
    path = write_config(tmp_path, VALID)
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    config, found = load_config(nested)

    assert found == path.resolve()
    assert [s.name for s in config.sources] == ["react", "stripe"]
    react = config.get_source("react")
    assert react.crawl and react.max_depth == 3 and react.is_directory_output
    assert not config.get_source("stripe").is_directory_output
    assert config.get_source("missing") is None


def test_load_config_returns_none_without_file(tmp_path):
    assert load_config(tmp_path) is None


@pytest.mark.parametrize(
    "content,expect_exc",
    [
        ("sources: [\n", ValueError),
        ("- just\n- a list\n", TypeError),
        ("sources:\n  - name: x\n    output: x.md\n", ValidationError),
        ("sources:\n  - name: x\n    url: ftp://x.com\n    output: x.md\n", ValidationError),
        ("sources:\n  - name: x\n    url: https://x.com\n    output: x.md\n    max_depth: -1\n", ValidationError),
    ],
)
def test_load_config_errors(tmp_path, content, expect_exc):
    write_config(tmp_path, content)
    with pytest.raises(expect_exc):
        load_config(tmp_path)


def test_empty_file_gives_defaults(tmp_path):
    write_config(tmp_path, "")
    config, _ = load_config(tmp_path)
    assert config.output_dir == ".ai/docs"
    assert config.sources == []


def test_save_and_reload_roundtrip(tmp_path):
    config = DocmunchConfig(output_dir="docs")
    add_source(config, SourceConfig(name="a", url="https://a.dev/docs", output="a.md"))
    save_config(config, tmp_path / CONFIG_FILENAME)

    reloaded, _ = load_config(tmp_path)
    assert reloaded == config


def test_add_source_replaces_same_name_in_place():
    config = DocmunchConfig()
    add_source(config, SourceConfig(name="a", url="https://a.dev", output="a.md"))
    add_source(config, SourceConfig(name="b", url="https://b.dev", output="b.md"))
    add_source(config, SourceConfig(name="a", url="https://a.dev/v2", crawl=True, output="a/"))

    assert [s.name for s in config.sources] == ["a", "b"]
    assert config.sources[0].url == "https://a.dev/v2"


def test_crawl_settings_validation():
    assert CrawlSettings().delay == 0.2
    with pytest.raises(ValidationError):
        CrawlSettings(delay=-1)
    with pytest.raises(ValidationError):
        CrawlSettings(unknown=1)
