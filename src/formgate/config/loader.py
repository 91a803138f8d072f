"""Form configuration and data loading.

Form configurations are JSON or YAML documents checked against the bundled
``schemas/form.schema.json`` before use.
"""

import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from formgate.config.settings import read_structured_file
from formgate.core.errors import FormConfigError

SCHEMA_DIR = Path(__file__).parent.parent / "schemas"
FORM_SCHEMA_FILE = SCHEMA_DIR / "form.schema.json"

_form_validator: Draft202012Validator | None = None


def get_form_schema_validator() -> Draft202012Validator:
    global _form_validator
    if _form_validator is None:
        with open(FORM_SCHEMA_FILE) as f:
            _form_validator = Draft202012Validator(json.load(f))
    return _form_validator


def check_form_config(form_config: Any) -> list[dict]:
    """Structural errors of a form configuration as ``{path, message}`` dicts"""
    errors = []
    for error in get_form_schema_validator().iter_errors(form_config):
        path = ".".join(str(p) for p in error.absolute_path)
        errors.append({"path": path or "root", "message": error.message})
    return errors


def load_form_config(path: Path | str) -> dict:
    """Read and structurally check a form configuration file"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Form configuration not found: {path}")

    form_config = read_structured_file(path)
    errors = check_form_config(form_config)
    if errors:
        raise FormConfigError(f"Invalid form configuration: {path} ({len(errors)} errors)", errors)
    return form_config


def load_data(path: Path | str) -> dict:
    """Read an input data document (JSON or YAML mapping)"""
    path = Path(path)
    data = read_structured_file(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Data file must contain a mapping: {path}")
    return data
