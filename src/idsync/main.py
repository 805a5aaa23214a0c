#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from idsync.app import Services, build_services
from idsync.common import configure_logging, level_for_verbosity
from idsync.config import ConfigurationError
from idsync.domain.credentials import extract, parse_credential
from idsync.domain.payload import parse_payload, validate_payload
from idsync.domain.ports import RemoteSource

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from idsync.domain.ingestion import IngestResult
    from idsync.domain.reconciliation import ReconcileResult
    from idsync.domain.validation import ValidationResult

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
STDIN_MARKER = "-"


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="idsync", description="Ingest, score and reconcile identity payloads"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v for INFO, -vv for DEBUG)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("validate", "Check whether a payload can describe an identity"),
        ("parse", "Show the attributes a payload yields without storing it"),
        ("ingest", "Store the identity described by a payload"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("payload", help="Payload text, or '-' to read it from stdin")

    fetch = subparsers.add_parser("fetch", help="Fetch and store an identity from a URL")
    fetch.add_argument("url", help="URL returning a JSON identity document")
    fetch.add_argument("--method", choices=("GET", "POST"), default="GET")
    fetch.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Extra request header (repeatable)",
    )
    fetch.add_argument("--body", type=str, help="JSON request body")

    subparsers.add_parser("list", help="List stored identities with their scores")

    score = subparsers.add_parser("score", help="Validate and summarise one identity")
    score.add_argument("identity_id")

    reconcile = subparsers.add_parser(
        "reconcile", help="Merge wallet credentials into stored identities"
    )
    target = reconcile.add_mutually_exclusive_group(required=True)
    target.add_argument("identity_id", nargs="?")
    target.add_argument("--all", action="store_true", help="Reconcile every stored identity")

    present = subparsers.add_parser(
        "present", help="Create a verifiable presentation for an identity"
    )
    present.add_argument("identity_id")
    present.add_argument(
        "--attribute",
        action="append",
        default=None,
        help="Attribute to disclose selectively (repeatable)",
    )

    return parser.parse_args(list(argv))


def _read_payload(value: str) -> str:
    if value == STDIN_MARKER:
        return sys.stdin.read().strip()
    return value


def _parse_headers(values: Sequence[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, header_value = value.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header (expected NAME=VALUE): {value}")
        headers[name.strip()] = header_value.strip()
    return headers


def _parse_body(value: str | None) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON body: {exc.msg}") from exc


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _validation_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "isValid": result.is_valid,
        "score": result.score,
        "errors": list(result.errors),
        "warnings": list(result.warnings),
    }


def _outcome_dict(result: IngestResult | ReconcileResult) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": result.success}
    if result.identity is not None:
        payload["identity"] = result.identity.to_dict()
    if result.error is not None:
        payload["error"] = result.error
    if result.warnings:
        payload["warnings"] = list(result.warnings)
    return payload


def _run_offline(args: argparse.Namespace) -> int:
    payload = _read_payload(args.payload)
    check = validate_payload(payload)
    if args.command == "validate":
        _emit({"isValid": check.is_valid, "error": check.error})
        return EXIT_OK if check.is_valid else EXIT_FAILURE

    credential = parse_credential(payload)
    if credential is not None:
        result = extract(credential)
        _emit(
            {
                "credential": credential.summary(),
                "attributes": result.attributes.to_dict(),
                "preflight": check.is_valid,
            }
        )
        return EXIT_OK
    _emit(
        {
            "credential": None,
            "attributes": parse_payload(payload).to_dict(),
            "preflight": check.is_valid,
        }
    )
    return EXIT_OK


async def _run(args: argparse.Namespace, services: Services) -> int:  # noqa: PLR0911
    command = args.command
    if command == "ingest":
        result = await services.ingest(_read_payload(args.payload))
        _emit(_outcome_dict(result))
        return EXIT_OK if result.success else EXIT_FAILURE

    if command == "fetch":
        source = RemoteSource(
            url=args.url,
            method=args.method,
            headers=_parse_headers(args.header),
            body=_parse_body(args.body),
        )
        result = await services.fetch(source)
        _emit(_outcome_dict(result))
        return EXIT_OK if result.success else EXIT_FAILURE

    if command == "list":
        records = await services.store.load()
        batch = services.validation.evaluate_batch(records)
        _emit(
            {
                "identities": [
                    {**item.identity.to_dict(), "validation": _validation_dict(item.validation)}
                    for item in batch.results
                ],
                "summary": {
                    "totalValidated": batch.summary.total_validated,
                    "validCount": batch.summary.valid_count,
                    "invalidCount": batch.summary.invalid_count,
                    "averageScore": batch.summary.average_score,
                    "commonIssues": list(batch.summary.common_issues),
                },
            }
        )
        return EXIT_OK

    if command == "score":
        record = await services.store.get_by_id(args.identity_id)
        if record is None:
            _emit({"success": False, "error": "Identity not found"})
            return EXIT_FAILURE
        summary = services.validation.summarize(record)
        _emit(
            {
                "validation": _validation_dict(services.validation.evaluate(record)),
                "level": summary.level.value,
                "primaryIssues": list(summary.primary_issues),
                "recommendations": list(summary.recommendations),
            }
        )
        return EXIT_OK

    if command == "reconcile":
        if args.all:
            refresh = await services.reconciliation.refresh_all()
            _emit(
                {
                    "updated": refresh.updated,
                    "errors": [
                        {"identityId": failure.identity_id, "error": failure.error}
                        for failure in refresh.errors
                    ],
                }
            )
            return EXIT_OK if not refresh.errors else EXIT_FAILURE
        result = await services.reconciliation.reconcile(args.identity_id)
        _emit(_outcome_dict(result))
        return EXIT_OK if result.success else EXIT_FAILURE

    if command == "present":
        presented = await services.reconciliation.build_presentation(
            args.identity_id, args.attribute
        )
        if presented.presentation is None:
            _emit({"success": False, "error": presented.error})
            return EXIT_FAILURE
        _emit({"success": True, "presentation": presented.presentation.to_dict()})
        return EXIT_OK

    raise ValueError(f"Unsupported command: {command}")


async def _run_with_services(
    args: argparse.Namespace, services_factory: Callable[[], Services]
) -> int:
    services = services_factory()
    try:
        return await _run(args, services)
    finally:
        await services.aclose()


def main(
    argv: Sequence[str] | None = None,
    *,
    services_factory: Callable[[], Services] = build_services,
) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=level_for_verbosity(parsed_args.verbose))
        if parsed_args.command == "fetch":
            _parse_headers(parsed_args.header)
            _parse_body(parsed_args.body)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        if parsed_args.command in {"validate", "parse"}:
            code = _run_offline(parsed_args)
        else:
            code = asyncio.run(_run_with_services(parsed_args, services_factory))
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(EXIT_FAILURE)
    if code != EXIT_OK:
        sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
