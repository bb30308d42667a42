import json

import pytest

from yak_a11y.config import (
    DEFAULT_FRAMEWORKS,
    CheckConfiguration,
    build_configuration,
    dev_server_configuration,
    load_config,
    parse_frameworks,
)


def test_defaults_are_static_only():
    config = CheckConfiguration()
    assert not config.dynamic_testing.enabled
    assert not config.islands_requested
    assert config.island_testing.frameworks == set(DEFAULT_FRAMEWORKS)


def test_from_mapping_accepts_camel_case_keys():
    config = CheckConfiguration.from_mapping({
        "verbose": True,
        "dynamicTesting": {"enabled": True, "waitForHydration": False, "routeChanges": True, "ajaxTimeout": 3000},
        "astroTesting": {"enabled": True, "testIslands": True, "frameworks": ["React", "vue"], "autoDetect": False},
    })

    assert config.verbose
    assert config.dynamic_testing.route_changes
    assert not config.dynamic_testing.wait_for_hydration
    assert config.dynamic_testing.ajax_timeout_ms == 3000
    assert config.island_testing.frameworks == {"react", "vue"}
    assert not config.island_testing.auto_detect
    assert config.islands_requested


def test_strict_from_either_section():
    assert CheckConfiguration.from_mapping({"island_testing": {"strict": True}}).strict
    assert CheckConfiguration.from_mapping({"dynamic_testing": {"strict": True}}).strict
    assert not CheckConfiguration().strict


def test_copy_is_independent():
    config = CheckConfiguration()
    clone = config.copy()
    clone.island_testing.frameworks &= {"react"}
    assert config.island_testing.frameworks == set(DEFAULT_FRAMEWORKS)


def test_load_config(tmp_path):
    path = tmp_path / "a11y.json"
    path.write_text(json.dumps({"navigation": {"retries": 5}}), encoding="utf-8")
    assert load_config(path).navigation.retries == 5


def test_load_config_rejects_non_objects(tmp_path):
    path = tmp_path / "a11y.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_parse_frameworks():
    assert parse_frameworks("react, Vue,,svelte ") == {"react", "vue", "svelte"}
    assert parse_frameworks(None) == set()


def test_presets():
    dev = dev_server_configuration()
    build = build_configuration()
    assert not dev.dynamic_testing.route_changes and dev.dynamic_testing.ajax_timeout_ms == 3000
    assert build.dynamic_testing.route_changes and build.dynamic_testing.ajax_timeout_ms == 5000
    assert dev.islands_requested and build.islands_requested
