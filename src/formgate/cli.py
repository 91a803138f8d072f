"""formgate command line interface.

    formgate validate FORM DATA [--settings FILE] [--field NAME] [--graph] [-v]
    formgate graph FORM [--mermaid]
"""

import argparse
import json
import logging
import sys

from formgate.config.loader import load_data, load_form_config
from formgate.config.settings import load_settings
from formgate.core.errors import FormConfigError
from formgate.core.validator import Validator
from formgate.graph.graph import DependencyGraphBuilder, export_graph

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_CONFIG_ERROR = 2


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _config_error(exc: Exception) -> int:
    payload = {"error": str(exc)}
    if isinstance(exc, FormConfigError):
        payload["details"] = exc.errors
    print(json.dumps(payload, indent=2, ensure_ascii=False), file=sys.stderr)
    return EXIT_CONFIG_ERROR


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        form_config = load_form_config(args.form)
        data = load_data(args.data)
        settings = load_settings(args.settings)
    except (FormConfigError, FileNotFoundError, ValueError) as exc:
        return _config_error(exc)

    if args.graph:
        settings.devtools = True

    result = Validator(settings).validate_sync(data, form_config)
    if args.field:
        field_result = result.field_results.get(args.field)
        payload = {
            "field": args.field,
            "valid": field_result.valid if field_result else True,
            "skipped": field_result.skipped if field_result else False,
            "errors": [e.to_dict() for e in result.get_field_errors(args.field)],
        }
        _print_json(payload)
        return EXIT_OK if payload["valid"] else EXIT_INVALID

    _print_json(result.to_dict())
    return EXIT_OK if result.valid else EXIT_INVALID


def cmd_graph(args: argparse.Namespace) -> int:
    try:
        form_config = load_form_config(args.form)
    except (FormConfigError, FileNotFoundError, ValueError) as exc:
        return _config_error(exc)

    graph = DependencyGraphBuilder().build(form_config)
    if args.mermaid:
        print(graph.to_mermaid())
    else:
        _print_json(export_graph(graph))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formgate", description="Declarative form validation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    validate = subparsers.add_parser("validate", help="Validate a data document against a form")
    validate.add_argument("form", help="Path to form configuration (JSON or YAML)")
    validate.add_argument("data", help="Path to input data (JSON or YAML)")
    validate.add_argument("--settings", help="Path to validator settings file")
    validate.add_argument("--field", help="Only report errors for this field path")
    validate.add_argument("--graph", action="store_true", help="Include the dependency graph")
    validate.set_defaults(func=cmd_validate)

    graph = subparsers.add_parser("graph", help="Show field dependency levels and cycles")
    graph.add_argument("form", help="Path to form configuration (JSON or YAML)")
    graph.add_argument("--mermaid", action="store_true", help="Output a Mermaid diagram")
    graph.set_defaults(func=cmd_graph)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_OK
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
