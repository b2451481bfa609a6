# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from site_search.config import AppConfig, SiteConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,expect_exc",
    [
        ("sites:\n  - name: Example\n    url: http://example.com/\n", None),
        (json.dumps({"sites": [{"name": "Example", "url": "http://example.com"}]}), None),
        (json.dumps({"sites": [{"name": "Example", "url": "ftp://example.com"}]}), ValidationError),
        ("unknown_key: 1", ValidationError),
        ("not: a: mapping", ValueError),
        ("- just\n- a list", TypeError),
    ],
)
def test_load_config_variants(tmp_path, content, expect_exc):
    suffix = ".json" if content.strip().startswith("{") else ".yaml"
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.sites[0].url == "http://example.com"
        assert cfg.snippet_length == 200


def test_load_config_default_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_config(None)


def test_load_config_unsupported_suffix(tmp_path):
    cfg_path = write_file(tmp_path, "sites: []", ".toml")
    with pytest.raises(ValueError):
        load_config(cfg_path)


def test_delay_bounds_validated():
    with pytest.raises(ValidationError):
        AppConfig(delay_min=3.0, delay_max=1.0)


def test_site_for_picks_longest_prefix():
    cfg = AppConfig(
        sites=[
            {"name": "Root", "url": "https://example.com"},
            {"name": "Blog", "url": "https://example.com/blog"},
        ]
    )
    assert cfg.site_for("https://example.com/blog/post-1").name == "Blog"
    assert cfg.site_for("https://example.com/about").name == "Root"
    assert cfg.site_for("https://example.com").name == "Root"
    assert cfg.site_for("https://example.org/") is None
    # prefix must end on a path boundary
    assert cfg.site_for("https://example.com.evil.org/") is None


def test_site_host_is_lowercased():
    assert SiteConfig(name="X", url="HTTPS://WWW.Example.COM/").host == "www.example.com"
