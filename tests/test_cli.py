"""
CLI Test Suite

Tests for cli.py:
- formgate validate (exit codes, --field, --graph, --settings)
- formgate graph (JSON and Mermaid)
"""

import json

import pytest

from formgate.cli import EXIT_CONFIG_ERROR, EXIT_INVALID, EXIT_OK, main

FORM = {
    "formId": "signup",
    "items": [
        {"name": "email", "type": "email", "validationRules": [{"type": "required"}, {"type": "email"}]},
        {"name": "nickname", "type": "text", "visibleIf": {"field": "email", "operator": "!=", "value": ""},
         "validationRules": [{"type": "stringLength", "max": 8}]},
    ],
}


@pytest.fixture
def form_file(tmp_path):
    path = tmp_path / "form.json"
    path.write_text(json.dumps(FORM))
    return path


def write_data(tmp_path, data):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(data))
    return path


class TestValidateCommand:

    def test_valid_data(self, tmp_path, form_file, capsys):
        data = write_data(tmp_path, {"email": "a@b.co", "nickname": "ada"})
        assert main(["validate", str(form_file), str(data)]) == EXIT_OK
        output = json.loads(capsys.readouterr().out)
        assert output["valid"] is True
        assert output["metadata"]["execution_mode"] == "sequential"

    def test_invalid_data(self, tmp_path, form_file, capsys):
        data = write_data(tmp_path, {"email": "", "nickname": "far-too-long"})
        assert main(["validate", str(form_file), str(data)]) == EXIT_INVALID
        output = json.loads(capsys.readouterr().out)
        assert output["errors"][0]["rule"] == "required"
        assert output["field_results"]["nickname"]["skipped"] is True

    def test_single_field(self, tmp_path, form_file, capsys):
        data = write_data(tmp_path, {"email": "a@b.co", "nickname": "far-too-long"})
        assert main(["validate", str(form_file), str(data), "--field", "nickname"]) == EXIT_INVALID
        output = json.loads(capsys.readouterr().out)
        assert output["field"] == "nickname"
        assert output["errors"][0]["rule"] == "stringLength"

    def test_graph_flag(self, tmp_path, form_file, capsys):
        data = write_data(tmp_path, {"email": "a@b.co"})
        main(["validate", str(form_file), str(data), "--graph"])
        output = json.loads(capsys.readouterr().out)
        assert output["dependency_graph"]["edges"] == [{"from": "nickname", "to": "email"}]

    def test_settings_file(self, tmp_path, form_file, capsys):
        data = write_data(tmp_path, {"email": "a@b.co"})
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"mode": "parallel"}))
        main(["validate", str(form_file), str(data), "--settings", str(settings)])
        output = json.loads(capsys.readouterr().out)
        assert output["metadata"]["execution_mode"] == "parallel"

    def test_invalid_form_exit_code(self, tmp_path, capsys):
        form = tmp_path / "bad.json"
        form.write_text(json.dumps({"items": [{"name": "a", "validationRules": [{"type": "nope"}]}]}))
        data = write_data(tmp_path, {})
        assert main(["validate", str(form), str(data)]) == EXIT_CONFIG_ERROR
        error = json.loads(capsys.readouterr().err)
        assert error["details"]

    def test_missing_form(self, tmp_path, capsys):
        data = write_data(tmp_path, {})
        assert main(["validate", str(tmp_path / "missing.json"), str(data)]) == EXIT_CONFIG_ERROR


class TestGraphCommand:

    def test_json_output(self, form_file, capsys):
        assert main(["graph", str(form_file)]) == EXIT_OK
        output = json.loads(capsys.readouterr().out)
        assert output["levels"] == [["email"], ["nickname"]]
        assert output["has_circular"] is False

    def test_mermaid_output(self, form_file, capsys):
        main(["graph", str(form_file), "--mermaid"])
        assert "nickname --> email" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_OK
        assert "usage" in capsys.readouterr().out
