"""
Unit tests: LoaderConfig loading and catalog parsing.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from loadkit.api.errors import ConfigurationError
from loadkit.catalog import LibraryCatalog, LibraryDescriptor, read_catalog
from loadkit.core.config import LoaderConfig
from loadkit.manager import LibraryManager
from tests.helpers import ScriptBehavior, define

pytestmark = [pytest.mark.unit, pytest.mark.config]


def test_defaults_match_the_documented_poll_budget():
    cfg = LoaderConfig()
    assert cfg.style_poll_interval_ms == 10
    assert cfg.style_poll_attempts == 3000
    assert cfg.style_timeout_ms == 30_000
    assert (cfg.script_charset, cfg.script_type) == ("utf-8", "text/javascript")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"style_poll_interval_ms": 0},
        {"style_poll_attempts": -1},
        {"script_charset": ""},
    ],
)
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        LoaderConfig(**kwargs)


def test_load_merges_file_env_and_overrides(tmp_path, monkeypatch):
    path = tmp_path / "loader.json"
    path.write_text(json.dumps({"style_poll_interval_ms": 25, "style_poll_attempts": 10}), encoding="utf-8")
    monkeypatch.delenv("LOADKIT_STYLE_POLL_INTERVAL_MS", raising=False)
    monkeypatch.setenv("LOADKIT_STYLE_POLL_ATTEMPTS", "40")
    monkeypatch.setenv("LOADKIT_CATALOG", "/etc/app/catalog.json")

    cfg = LoaderConfig.load(path, overrides={"script_type": "module"})

    assert cfg.style_poll_interval_ms == 25
    assert cfg.style_poll_attempts == 40
    assert cfg.style_timeout_ms == 1000
    assert cfg.catalog_path == "/etc/app/catalog.json"
    assert cfg.script_type == "module"


def test_load_without_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("LOADKIT_STYLE_POLL_INTERVAL_MS", raising=False)
    monkeypatch.delenv("LOADKIT_STYLE_POLL_ATTEMPTS", raising=False)
    monkeypatch.delenv("LOADKIT_CATALOG", raising=False)

    assert LoaderConfig.load(tmp_path / "missing.json") == LoaderConfig()


def test_non_integer_env_is_an_error(monkeypatch):
    monkeypatch.setenv("LOADKIT_STYLE_POLL_INTERVAL_MS", "fast")
    with pytest.raises(ValueError, match="LOADKIT_STYLE_POLL_INTERVAL_MS"):
        LoaderConfig.load()


def test_descriptor_accepts_config_and_python_names():
    camel = LibraryDescriptor.model_validate(
        {
            "url": "x.js",
            "requires": ["y"],
            "definesSymbol": "X.ready",
            "invokeDefinedSymbol": True,
            "stylesheets": None,
            "comment": "ignored",
        }
    )
    snake = LibraryDescriptor(url="x.js", dependencies=["y"], defines_symbol="X.ready", invoke_defined_symbol=True)

    assert camel == snake
    assert camel.stylesheets == []


def test_catalog_fills_ids_and_returns_empty_descriptor_for_unknown():
    catalog = LibraryCatalog({"x": {"url": "x.js", "definesSymbol": "X"}, "y": None})

    assert catalog["x"].id == "x"
    assert catalog.lookup("y").url is None
    assert catalog.lookup("zzz") == LibraryDescriptor(id="zzz")
    assert sorted(catalog) == ["x", "y"]


def test_malformed_entries_fail_on_lookup_with_their_id():
    catalog = LibraryCatalog({"x": ["x.js"], "y": {"url": "y.js", "requires": "x"}, "z": {"url": "z.js"}})

    assert sorted(catalog) == ["x", "y", "z"]
    assert catalog.lookup("z").url == "z.js"

    with pytest.raises(ConfigurationError) as ei:
        catalog.lookup("x")
    assert ei.value.library_id == "x"
    assert "expected an object, got list" in str(ei.value)

    with pytest.raises(ConfigurationError) as ei:
        catalog["y"]
    assert ei.value.library_id == "y"
    assert "requires" in str(ei.value)
    assert isinstance(ei.value.__cause__, ValidationError)


def test_lookup_validates_each_entry_once():
    catalog = LibraryCatalog({"x": {"url": "x.js", "definesSymbol": "X"}})
    assert catalog.lookup("x") is catalog["x"]


def test_catalog_from_app_config_block(tmp_path):
    path = tmp_path / "app.json"
    path.write_text(
        json.dumps({"server": "/api", "external-libraries": {"x": {"url": "x.js", "definesSymbol": "X"}}}),
        encoding="utf-8",
    )

    catalog = LibraryCatalog.from_file(path)
    assert list(catalog) == ["x"]
    assert len(LibraryCatalog.from_config({"server": "/api"})) == 0


@pytest.mark.asyncio
async def test_manager_from_config_reads_catalog_file(tmp_path, document, root, clock, metrics):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"x": {"url": "x.js", "definesSymbol": "X"}}), encoding="utf-8")
    document.scripts["x.js"] = ScriptBehavior(effect=define("X"))

    mgr = LibraryManager.from_config(
        LoaderConfig(catalog_path=str(path)), document, root=root, clock=clock, metrics=metrics
    )
    assert (await mgr.ensure("x")).src == "x.js"


def test_manager_from_config_requires_catalog_path(document, root):
    with pytest.raises(ValueError):
        LibraryManager.from_config(LoaderConfig(), document, root=root)


def test_read_catalog_accepts_mapping_catalog_or_provider():
    raw = {"x": {"url": "x.js", "definesSymbol": "X"}}
    catalog = LibraryCatalog(raw)

    assert read_catalog(catalog) is catalog
    assert read_catalog(raw)["x"].url == "x.js"
    assert read_catalog(lambda: raw)["x"].defines_symbol == "X"
    assert len(read_catalog(lambda: None)) == 0
