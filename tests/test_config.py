"""
Tests for decompiler configuration and its YAML loading.
"""

import pytest
from mgdc.config import (
    DecompilerConfig,
    config_from_dict,
    config_from_yaml,
    config_to_dict,
    load_config,
)
from mgdc.errors import ConfigError
from mgdc.graph import NodeCategory


class TestDefaults:

    def test_thresholds(self):
        config = DecompilerConfig()
        assert config.inline_taxa_threshold == 80
        assert config.inline_length_threshold == 1000

    def test_primary_slot_lookup_with_fallback(self):
        config = DecompilerConfig()
        assert config.primary_slot("YuleModel") == "tree"
        assert config.primary_slot("Normal") == "x"

    def test_machinery(self):
        config = DecompilerConfig()
        assert config.is_machinery(NodeCategory.OPERATOR)
        assert config.is_machinery(NodeCategory.COMPOSITE)
        assert not config.is_machinery(NodeCategory.PARAMETER)

    def test_instances_do_not_share_tables(self):
        a, b = DecompilerConfig(), DecompilerConfig()
        a.primary_slots["Custom"] = "y"
        assert "Custom" not in b.primary_slots


class TestLoading:

    def test_partial_dict_keeps_defaults(self):
        config = config_from_dict({"inline_taxa_threshold": 10})
        assert config.inline_taxa_threshold == 10
        assert config.inline_length_threshold == 1000

    def test_none_gives_defaults(self):
        assert config_from_dict(None) == DecompilerConfig()

    def test_round_trip_through_dict(self):
        config = DecompilerConfig(data_dir="out")
        assert config_from_dict(config_to_dict(config)) == config

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigError):
            config_from_dict({"no_such_option": 1})

    def test_non_mapping_rejected(self):
        with pytest.raises(ConfigError):
            config_from_dict(["a", "b"])

    def test_unknown_category_rejected(self):
        with pytest.raises(ConfigError):
            config_from_dict({"machinery_categories": ["gizmo"]})

    def test_yaml(self):
        config = config_from_yaml("data_dir: out/data\nwrapper_slots:\n  Prior: distr\n  Wrapped: inner\n")
        assert config.data_dir == "out/data"
        assert config.wrapper_slots == {"Prior": "distr", "Wrapped": "inner"}

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError):
            config_from_yaml("a: [unclosed")

    def test_load_config_file(self, tmp_path):
        path = tmp_path / "mgdc.yaml"
        path.write_text("write_data_files: false\n")
        assert load_config(str(path)).write_data_files is False
