"""
Configuration Test Suite

Tests for settings.py and loader.py:
- ValidatorConfig.from_dict() / load_settings() (JSON and YAML)
- load_form_config() structural checks against form.schema.json
- load_data()
"""

import json

import pytest
import yaml

from formgate.config.loader import check_form_config, load_data, load_form_config
from formgate.config.settings import CacheConfig, ValidatorConfig, load_settings
from formgate.core.errors import FormConfigError


class TestSettings:

    def test_defaults(self):
        config = ValidatorConfig()
        assert config.mode == "sequential"
        assert config.adapter == "jsonschema"
        assert config.async_timeout_ms == 5000
        assert config.cache == CacheConfig()

    def test_from_dict_accepts_camel_case(self):
        config = ValidatorConfig.from_dict({
            "mode": "parallel",
            "asyncTimeoutMs": 1500,
            "tenantContext": {"tenant": "acme"},
            "cache": {"enabled": True, "maxSize": 100},
            "unknown": "ignored",
        })
        assert config.mode == "parallel"
        assert config.async_timeout_ms == 1500
        assert config.tenant_context == {"tenant": "acme"}
        assert config.cache.enabled is True
        assert config.cache.max_size == 100

    def test_load_missing_file_returns_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.json") == ValidatorConfig()
        assert load_settings(None) == ValidatorConfig()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"locale": "hu", "devtools": True}))
        config = load_settings(path)
        assert config.locale == "hu"
        assert config.devtools is True
        assert config.mode == "sequential"

    def test_load_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"mode": "adaptive"}))
        assert load_settings(path).mode == "adaptive"

    def test_non_mapping_is_rejected(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_settings(path)


VALID_FORM = {
    "formId": "contact",
    "items": [
        {"type": "group", "name": "person", "items": [
            {"name": "email", "type": "email", "visibleIf": {"wantsMail": True},
             "validationRules": [
                 {"type": "required"},
                 {"or": [{"type": "email"}, {"type": "pattern", "pattern": "^\\d+$"}],
                  "groupMessage": "email or phone"},
                 {"not": {"type": "pattern", "pattern": "^admin"}},
             ]},
        ]},
    ],
    "computedRules": [{"name": "total", "type": "aggregate", "inputFields": ["email"]}],
}


class TestFormLoader:

    def test_valid_form_has_no_errors(self):
        assert check_form_config(VALID_FORM) == []

    def test_unknown_rule_type_is_reported(self):
        form = {"items": [{"name": "a", "validationRules": [{"type": "mystery"}]}]}
        errors = check_form_config(form)
        assert errors
        assert errors[0]["path"].startswith("items.0.validationRules.0")

    def test_items_must_be_list(self):
        errors = check_form_config({"items": {"name": "a"}})
        assert errors[0]["path"] == "items"

    def test_root_must_be_object(self):
        assert check_form_config(["a"])[0]["path"] == "root"

    def test_load_json_form(self, tmp_path):
        path = tmp_path / "form.json"
        path.write_text(json.dumps(VALID_FORM))
        assert load_form_config(path)["formId"] == "contact"

    def test_load_yaml_form(self, tmp_path):
        path = tmp_path / "form.yml"
        path.write_text(yaml.safe_dump(VALID_FORM))
        assert load_form_config(path) == VALID_FORM

    def test_invalid_form_raises(self, tmp_path):
        path = tmp_path / "form.json"
        path.write_text(json.dumps({"items": [{"validationRules": [{"min": 1}]}]}))
        with pytest.raises(FormConfigError) as exc_info:
            load_form_config(path)
        assert exc_info.value.errors

    def test_missing_form(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_form_config(tmp_path / "missing.json")


class TestDataLoader:

    def test_load_data(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"email": "a@b.co"}))
        assert load_data(path) == {"email": "a@b.co"}

    def test_empty_yaml_is_empty_mapping(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text("")
        assert load_data(path) == {}

    def test_non_mapping_data(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_data(path)
