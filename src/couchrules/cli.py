"""CLI entry point for couchrules."""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import cast

from couchrules import __version__
from couchrules.config import CONFIG_FILENAME, CouchConfig, load_config
from couchrules.couch.client import CouchClient
from couchrules.errors import StoreError
from couchrules.rules.discovery import DEFAULT_PACKAGE, discover_definitions
from couchrules.rules.evaluate import evaluate_document
from couchrules.rules.metadata import validate_metadata
from couchrules.sync.loader import RegistryLoader
from couchrules.sync.models import SyncState
from couchrules.sync.unloader import RegistryUnloader


def _config(args: argparse.Namespace) -> CouchConfig:
    config = load_config(cast(Path, args.config))
    if getattr(args, "db", None):
        config.database = args.db
    if getattr(args, "url", None):
        config.url = args.url
    if getattr(args, "user", None):
        config.username = args.user
    if getattr(args, "password", None):
        config.password = args.password
    return config


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _rule_package(name: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except ImportError as e:
        _fail(f"cannot import rule package {name!r}: {e}")
        raise


def _number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        return float(text)


def _print_check(ok: bool, label: str) -> None:
    mark = "OK  " if ok else "FAIL"
    print(f"  [{mark}] {label}")


def _cmd_load(args: argparse.Namespace) -> None:
    config = _config(args)
    package = _rule_package(args.package)
    print(f"Loading rules from {args.package} into {config.database_url}")
    try:
        with CouchClient(config) as client:
            if args.create_db and client.create_database():
                print(f"Created database '{config.database}'")
            summary = RegistryLoader(client).sync_from_package(package)
    except StoreError as e:
        _fail(str(e))
        return

    for outcome in summary.outcomes:
        if outcome.state == SyncState.SUCCEEDED:
            print(f"  {outcome.action}d {outcome.identifier} (rev {outcome.revision})")
        else:
            print(f"  FAILED {outcome.identifier}: {outcome.error}")
    print(f"\nCreated: {summary.created}  Updated: {summary.updated}  Failed: {summary.failed}")
    if not summary.ok:
        sys.exit(1)


def _cmd_unload(args: argparse.Namespace) -> None:
    config = _config(args)
    try:
        with CouchClient(config) as client:
            result = RegistryUnloader(client).unload_all()
    except StoreError as e:
        _fail(str(e))
        return

    print(f"Removed: {result.deleted_count}")
    if result.already_absent:
        print(f"Already absent: {', '.join(result.already_absent)}")
    if result.failures:
        print(f"Failed to remove: {', '.join(result.failures)}", file=sys.stderr)
        sys.exit(1)


def _cmd_list(args: argparse.Namespace) -> None:
    config = _config(args)
    try:
        with CouchClient(config) as client:
            rows = client.design_documents()
            docs = [client.get_document(row["id"]) for row in rows]
    except StoreError as e:
        _fail(str(e))
        return

    if not docs:
        print(f"No rules in '{config.database}'")
        return
    for doc in docs:
        meta = doc.get("rule_metadata") or {}
        version = meta.get("version", "-")
        status = meta.get("status", "-")
        print(f"{doc['_id']:<40} {version:<12} {status:<9} {meta.get('name', '')}")


def _cmd_check(args: argparse.Namespace) -> None:
    config = _config(args)
    print(f"Checking {config.database_url}")
    all_ok = True
    with CouchClient(config) as client:
        try:
            info = client.server_info()
            _print_check(True, f"CouchDB {info.get('version', 'unknown')} reachable")
        except StoreError as e:
            _print_check(False, f"CouchDB not reachable: {e}")
            sys.exit(1)
        try:
            db = client.database_info()
            _print_check(True, f"Database '{config.database}' ({db.get('doc_count', 0)} docs)")
        except StoreError as e:
            _print_check(False, f"Database '{config.database}': {e}")
            all_ok = False
    if not all_ok:
        sys.exit(1)


def _cmd_validate(args: argparse.Namespace) -> None:
    discovered = discover_definitions(_rule_package(args.package))
    all_ok = not discovered.errors
    for identifier, reason in discovered.errors.items():
        _print_check(False, f"{identifier}: {reason}")
    for definition in discovered.definitions:
        if definition.metadata is None:
            _print_check(True, f"{definition.identifier}: no metadata (defaults generated on load)")
            continue
        result = validate_metadata(definition.metadata)
        if result.is_valid:
            _print_check(True, f"{definition.identifier} {definition.metadata.version}")
        else:
            all_ok = False
            _print_check(False, f"{definition.identifier}: {'; '.join(result.errors)}")
    if not all_ok:
        sys.exit(1)


def _cmd_evaluate(args: argparse.Namespace) -> None:
    path = cast(Path, args.document)
    if not path.exists():
        _fail(f"file not found: {path}")
    try:
        document = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        _fail(f"{path} is not valid JSON: {e}")
        return
    if not isinstance(document, dict):
        _fail(f"{path} must contain a JSON object")

    discovered = discover_definitions(_rule_package(args.package))
    report = evaluate_document(document, discovered.definitions)
    for rejection in report.rejections:
        print(f"  REJECTED by {rejection.identifier}: {rejection.reason}")
    for identifier in report.skipped:
        print(f"  skipped {identifier} (JavaScript-only predicate)")
    if report.passed:
        print(f"Document accepted by {len(report.checked)} rule(s)")
        return
    print(
        f"Document rejected by {len(report.rejections)} rule(s). "
        "CouchDB reports only the first failing rule."
    )
    sys.exit(1)


def _cmd_new(args: argparse.Namespace) -> None:
    from couchrules.generator import RuleScaffold, scaffold_rule

    if args.validators_dir is not None:
        validators_dir = cast(Path, args.validators_dir)
        package = cast(str | None, args.package) or validators_dir.name
    else:
        import couchrules.validators as builtin

        validators_dir = Path(builtin.__file__).parent
        package = cast(str | None, args.package) or DEFAULT_PACKAGE
    scaffold = RuleScaffold(
        name=args.name,
        description=args.description,
        field_name=args.field,
        reason=args.reason,
        operator=args.operator,
        limit=args.limit,
        required=args.required,
        author=args.author or _config(args).default_author,
        tags=[t.strip() for t in (args.tags or "").split(",") if t.strip()],
        package=package,
    )
    try:
        written = scaffold_rule(scaffold, validators_dir, cast(Path, args.tests_dir))
    except (ValueError, OSError) as e:
        _fail(str(e))
        return
    for path in written:
        print(f"Created: {path}")


def _add_store_args(p: argparse.ArgumentParser) -> None:
    _ = p.add_argument("--db", default=None, help="Database name (default: rules_db)")
    _ = p.add_argument("--url", default=None, help="CouchDB base URL")
    _ = p.add_argument("--user", default=None, help="CouchDB username")
    _ = p.add_argument("--password", default=None, help="CouchDB password")


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.environ.get("COUCHRULES_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="couchrules",
        description="Deploy eligibility rules as CouchDB validation functions",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"couchrules {__version__}"
    )
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help=f"JSON config file (default: ./{CONFIG_FILENAME})",
    )
    _ = parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    load_p = subparsers.add_parser("load", help="Create or update rules in CouchDB")
    _add_store_args(load_p)
    _ = load_p.add_argument(
        "--create-db", action="store_true", dest="create_db", help="Create the database first"
    )
    _ = load_p.add_argument("--package", default=DEFAULT_PACKAGE, help="Rule package to load")

    unload_p = subparsers.add_parser("unload", help="Remove all rules from CouchDB")
    _add_store_args(unload_p)

    list_p = subparsers.add_parser("list", help="List rules stored in CouchDB")
    _add_store_args(list_p)

    check_p = subparsers.add_parser("check", help="Check CouchDB connectivity")
    _add_store_args(check_p)

    validate_p = subparsers.add_parser("validate", help="Validate local rule metadata")
    _ = validate_p.add_argument("--package", default=DEFAULT_PACKAGE)

    eval_p = subparsers.add_parser("evaluate", help="Evaluate a JSON document locally")
    _ = eval_p.add_argument("document", type=Path, help="Path to a JSON document")
    _ = eval_p.add_argument("--package", default=DEFAULT_PACKAGE)

    new_p = subparsers.add_parser("new", help="Scaffold a new rule and its test")
    _ = new_p.add_argument("name", help='Display name, e.g. "Applicant Age"')
    _ = new_p.add_argument("--description", required=True)
    _ = new_p.add_argument("--field", required=True, help="Document field to check")
    _ = new_p.add_argument("--reason", required=True, help="Rejection message")
    _ = new_p.add_argument(
        "--operator",
        default="present",
        choices=["<", "<=", ">", ">=", "==", "!=", "present"],
    )
    _ = new_p.add_argument("--limit", type=_number, default=None)
    _ = new_p.add_argument("--required", action="store_true", help="Reject missing fields")
    _ = new_p.add_argument("--author", default=None)
    _ = new_p.add_argument("--tags", default="", help="Comma-separated tags")
    _ = new_p.add_argument("--validators-dir", type=Path, default=None, dest="validators_dir")
    _ = new_p.add_argument("--tests-dir", type=Path, default=Path("tests"), dest="tests_dir")
    _ = new_p.add_argument(
        "--package",
        default=None,
        help="Dotted package the generated test imports from (default: validators dir name)",
    )

    args = parser.parse_args()
    _configure_logging(cast(bool, args.verbose))

    dispatch = {
        "load": _cmd_load,
        "unload": _cmd_unload,
        "list": _cmd_list,
        "check": _cmd_check,
        "validate": _cmd_validate,
        "evaluate": _cmd_evaluate,
        "new": _cmd_new,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)
