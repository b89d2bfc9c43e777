from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from adroles.app import create_identity_service
from adroles.config import configure_logging
from adroles.domain.model import RoleResource

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from adroles.app import IdentityService
    from adroles.domain.results import ServiceResult
    from adroles.jobs import JobHandle

log = logging.getLogger(__name__)

CLI_SESSION_KEY = "cli"
SEARCH_KINDS = ("persons", "roles", "ad-users", "ad-groups")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile directory accounts, groups and roles")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync-accounts", help="Mirror directory accounts and link persons")
    subparsers.add_parser("sync-groups", help="Mirror directory groups and their roles")
    subparsers.add_parser(
        "import-persons",
        help="Create or update persons from directory accounts and link them",
    )

    assign = subparsers.add_parser(
        "assign",
        help="Assign persons to the organizational role named like their department",
    )
    assign.add_argument(
        "--person-id",
        dest="person_ids",
        action="append",
        default=[],
        help="Restrict the run to this person (repeatable; default: all persons)",
    )

    subparsers.add_parser("verify-connection", help="Bind to the directory and report")
    subparsers.add_parser("stats", help="Show record counts")

    search = subparsers.add_parser("search", help="Search stored records")
    search.add_argument("kind", choices=SEARCH_KINDS, help="Record type to search")
    search.add_argument("term", help="Case-insensitive substring")

    role = subparsers.add_parser("role", help="Role management commands")
    role_sub = role.add_subparsers(dest="role_command", required=True)
    set_resource = role_sub.add_parser("set-resource", help="Reclassify roles")
    set_resource.add_argument(
        "--role-id",
        dest="role_ids",
        action="append",
        required=True,
        help="Role to reclassify (repeatable)",
    )
    set_resource.add_argument(
        "--resource",
        choices=[resource.value for resource in RoleResource],
        required=True,
        help="New role resource",
    )
    assign_department = role_sub.add_parser(
        "assign-department",
        help="Assign every person of the role's department name to the role",
    )
    assign_department.add_argument("--role-id", required=True, help="Role to fill")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _report(result: ServiceResult) -> None:
    if result.success:
        log.info("%s", result.message)
    else:
        log.error("%s", result.message)
    for warning in result.warnings:
        log.warning("%s", warning)
    if not result.success:
        sys.exit(1)


def _run_job(service: IdentityService, submit: Callable[[], JobHandle]) -> None:
    subscription = service.register(CLI_SESSION_KEY, caller_identity="cli")
    try:
        handle = submit()
        handle.result()
        event = subscription.next_event(timeout=1.0)
    finally:
        service.unregister(CLI_SESSION_KEY)
    log.debug("Job %s finished as %s", event.job_id, handle.state)
    _report(event.result)


def _dispatch(service: IdentityService, args: argparse.Namespace) -> None:
    if args.command == "sync-accounts":
        _run_job(service, service.submit_account_sync)
    elif args.command == "sync-groups":
        _run_job(service, service.submit_group_role_sync)
    elif args.command == "import-persons":
        _run_job(service, service.submit_person_import)
    elif args.command == "assign":
        person_ids = [_parse_uuid(value) for value in args.person_ids]
        _run_job(service, lambda: service.submit_automatic_assignment(person_ids or None))
    elif args.command == "verify-connection":
        _report(service.verify_connection())
    elif args.command == "stats":
        for name, value in service.statistics().as_dict().items():
            print(f"{name:<24}{value}")  # noqa: T201
    elif args.command == "search":
        for record in service.search(args.kind, args.term):
            print(f"{record.id}  {_describe(record)}")  # noqa: T201
    elif args.command == "role" and args.role_command == "set-resource":
        role_ids = [_parse_uuid(value) for value in args.role_ids]
        _report(service.change_role_resource(role_ids, RoleResource(args.resource)))
    elif args.command == "role" and args.role_command == "assign-department":
        _report(service.assign_role_from_department(_parse_uuid(args.role_id)))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def _raw_ids(args: argparse.Namespace) -> list[str]:
    values: list[str] = [*getattr(args, "person_ids", ()), *getattr(args, "role_ids", ())]
    role_id = getattr(args, "role_id", None)
    if role_id is not None:
        values.append(role_id)
    return values


def _describe(record: object) -> str:
    for attribute in ("display_name", "name", "logon_name", "common_name"):
        value = getattr(record, attribute, None)
        if value:
            return str(value)
    return repr(record)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        for value in _raw_ids(parsed_args):
            _parse_uuid(value)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        with create_identity_service() as service:
            _dispatch(service, parsed_args)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
