"""Command-line interface for one-off checks and post-toggle validation.

Usage:
    cloudsec-compliance rules
    cloudsec-compliance check [--descriptors FILE] [--expect secure|insecure]
                              [--publish] [--output FILE]

``check`` runs against live AWS resources unless ``--descriptors`` points at
a JSON file holding a list of ``{"kind", "id", "fields"}`` objects (or an
object with a ``descriptors`` key). Output is the JSON check result.

Exit codes: 0 ok, 1 expected-state violations found, 2 run or input failure.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from cloudsec_compliance.api.schemas import ResourceDescriptorSchema
from cloudsec_compliance.compliance.models import ResourceDescriptor
from cloudsec_compliance.compliance.state_validator import ExpectedState
from cloudsec_compliance.errors import ComplianceError
from cloudsec_compliance.observability import configure_logging, get_logger
from cloudsec_compliance.settings import Settings
from cloudsec_compliance.wiring import build_check_service

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FAILURE = 2

_descriptor_list = TypeAdapter(list[ResourceDescriptorSchema])


def load_descriptors(path: Path) -> list[ResourceDescriptor]:
    """Load a descriptor batch from a JSON file.

    Raises:
        ValueError: If the file is not valid JSON or not a descriptor batch.
    """
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc.msg} (line {exc.lineno} column {exc.colno})") from exc

    if isinstance(raw, dict):
        raw = raw.get("descriptors", [])
    try:
        schemas = _descriptor_list.validate_python(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid descriptor batch in {path}: {exc}") from exc
    return [schema.to_descriptor() for schema in schemas]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudsec-compliance",
        description="Configuration-compliance checks for tagged AWS resources.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("rules", help="List the enabled compliance rules")

    check = subparsers.add_parser("check", help="Run a compliance check")
    check.add_argument("--descriptors", type=Path, help="Evaluate descriptors from a JSON file instead of AWS")
    check.add_argument(
        "--expect",
        choices=[state.value for state in ExpectedState],
        help="Validate the result against the expected environment state",
    )
    check.add_argument("--publish", action="store_true", help="Publish the failure metric and alert (live runs)")
    check.add_argument("--output", type=Path, help="Write the JSON result to a file instead of stdout")
    return parser


def _emit(payload: dict[str, Any], output: Path | None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output is None:
        print(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv.
        settings: Settings override, mainly for tests.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    settings = settings or Settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    offline = args.command == "rules" or args.descriptors is not None
    try:
        service = build_check_service(settings, live=not offline)

        if args.command == "rules":
            rules = service.engine.registry.list_all()
            _emit(
                {
                    "rules": [
                        {
                            "id": rule.id,
                            "kind": rule.kind.value,
                            "severity": rule.severity.name,
                            "description": rule.description,
                        }
                        for rule in rules
                    ]
                },
                None,
            )
            return EXIT_OK

        if args.descriptors is not None:
            result = service.evaluate(load_descriptors(args.descriptors), expected_state=args.expect)
        else:
            result = service.run(publish=args.publish, expected_state=args.expect)
    except (ComplianceError, ValueError) as exc:
        logger.error("Check failed", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    _emit(result.to_dict(), args.output)
    if result.validation is not None and not result.validation.ok:
        return EXIT_VIOLATIONS
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
