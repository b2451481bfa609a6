# File: tests/test_cli.py
"""Тесты для CLI (`cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `index`, `index-page`, `search`, `stats`, `config`, `--version`,
а также обработку ошибок.
"""
import json

import pytest
import site_search.cli as cli_module
from click.testing import CliRunner
from site_search.cli import cli
from site_search.engine import Engine
from site_search.indexer import save_lemmas_and_indexes
from site_search.logger import configure
from site_search.models import Page, Site, SiteStatus

QUIET = ["--log-level", "CRITICAL"]


@pytest.fixture(autouse=True)
def restore_logging():
    """CliRunner подменяет stdout; возвращаем обработчик логов на настоящий поток."""
    yield
    configure(level="INFO")


@pytest.fixture()
def cfg_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        json.dumps(
            {
                "sites": [{"name": "Example", "url": "https://example.com/"}],
                "delay_min": 0,
                "delay_max": 0,
                "database_url": "memory://",
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def patch_engine(monkeypatch, storage, lemmatizer):
    """Патчим build_engine: хранилище в памяти с одной проиндексированной страницей."""
    site = storage.create_site(Site(url="https://example.com", name="Example", status=SiteStatus.INDEXED))
    page = storage.create_page(
        Page(site_id=site.id, path="/fox", code=200, content="the quick fox", title="Fox")
    )
    save_lemmas_and_indexes(storage, page, lemmatizer.count_lemmas(page.content))

    monkeypatch.setattr(
        cli_module, "build_engine", lambda cfg: Engine(cfg, storage=storage, lemmatizer=lemmatizer)
    )
    return storage


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SiteSearch" in result.output


def test_show_config(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["sites"][0]["url"] == "https://example.com"
    assert data["snippet_length"] == 200


def test_invalid_config(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("sites:\n  - name: X\n    url: ftp://example.com\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(bad), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_search_stdout(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "search", "fox", "--limit", "5"])
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["result"] is True
    assert output["count"] == 1
    assert output["data"][0]["uri"] == "/fox"
    assert output["data"][0]["title"] == "Fox - /fox"
    assert "<b>fox</b>" in output["data"][0]["snippet"]


def test_search_empty_query(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "search", "  "])
    assert result.exit_code == 1
    assert "пустой" in result.output


def test_stats(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "stats", "--pretty"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["total"] == {"sites": 1, "pages": 1, "lemmas": 2, "indexing": False}
    assert data["detailed"][0]["status"] == "INDEXED"


def test_index_page_unknown_site(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "index-page", "https://other.org/x"])
    assert result.exit_code == 1
    assert "не найден в конфигурации" in result.output


def test_index_without_sites(tmp_path, patch_engine):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("sites: []\ndatabase_url: 'memory://'\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg), "index"])
    assert result.exit_code == 0
    first, _, rest = result.output.partition("\n")
    assert first == "Starting indexing of 0 site(s)"
    # the orchestrator touches only configured sites
    assert json.loads(rest)["total"]["sites"] == 1


def test_package_exports_group_without_hiding_module():
    import site_search

    assert site_search.main_cli is cli_module.cli
    assert callable(cli_module.build_engine)


def test_engine_closed_after_command(cfg_file, monkeypatch, patch_engine):
    closed = []
    monkeypatch.setattr(patch_engine, "close", lambda: closed.append(True))
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "stats"])
    assert result.exit_code == 0
    assert closed == [True]


def test_engine_closed_when_command_fails(cfg_file, monkeypatch, patch_engine):
    closed = []
    monkeypatch.setattr(patch_engine, "close", lambda: closed.append(True))
    runner = CliRunner()
    result = runner.invoke(cli, [*QUIET, "--config", str(cfg_file), "search", "  "])
    assert result.exit_code == 1
    assert closed == [True]
