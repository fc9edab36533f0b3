"""
Registry CLI — naming and account registry for bootstrap/destroy tooling

Usage:
  org-registry names [--env dev] [--account-id 123456789012] [--email-domain example.com]
  org-registry accounts show
  org-registry accounts require
  org-registry accounts management
  org-registry accounts bind dev 123456789012
  org-registry accounts replace dev 210987654321 --old-status SUSPENDED
  org-registry accounts members [--filter 111111111111,222222222222]
  org-registry match NAME [NAME ...]
  org-registry regions

Environment Variables (override org_registry/defaults.yaml):
  REPO_FULL_NAME / GITHUB_REPO — Repository in owner/repo form
  PROJECT_SHORT_NAME           — Short project name
  PROJECT_NAME                 — Full project name (default: owner-repo)
  ACCOUNTS_FILE                — Registry path (default: bootstrap/accounts.json)
  MANAGEMENT_ACCOUNT_ID        — Management account id
  ACCOUNT_FILTER               — Comma-separated account allow-list
  DRY_RUN / VERBOSE            — Execution modes ("true"/"false")
"""

import argparse
import json
import logging
import sys
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from org_registry import (
    CallerIdentity,
    PatternMatcher,
    ProjectConfig,
    RegionSweeper,
    RegistryError,
    RegistrySnapshot,
    derive,
    load,
    member_account_ids,
    require_complete,
    save,
    validate_environment,
)

logger = logging.getLogger("org_registry.cli")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="org-registry",
        description="Project naming and AWS account registry",
    )
    parser.add_argument("--accounts-file", help="Registry path (overrides ACCOUNTS_FILE)")
    parser.add_argument("--dry-run", action="store_true", help="Log changes instead of writing")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    names = sub.add_parser("names", help="Print derived resource names as JSON")
    names.add_argument("--env", help="Also render per-environment names")
    names.add_argument("--account-id", default="", help="Account id for state bucket / KMS names")
    names.add_argument("--email-domain", default="", help="Domain for the account email")

    accounts = sub.add_parser("accounts", help="Inspect or update the account registry")
    acc_sub = accounts.add_subparsers(dest="accounts_command", required=True)
    acc_sub.add_parser("show", help="Print the registry")
    acc_sub.add_parser("require", help="Fail unless dev, staging and prod are set")

    bind = acc_sub.add_parser("bind", help="Bind an account id to an unset environment")
    bind.add_argument("environment")
    bind.add_argument("account_id")

    replace = acc_sub.add_parser("replace", help="Replace an environment's account, keeping history")
    replace.add_argument("environment")
    replace.add_argument("account_id")
    replace.add_argument("--old-status", required=True, help="Status of the old account, e.g. SUSPENDED")

    acc_sub.add_parser("management", help="Print the management account id")

    members = acc_sub.add_parser("members", help="Print member account ids")
    members.add_argument("--filter", default=None, help="Comma-separated allow-list (overrides ACCOUNT_FILTER)")

    match = sub.add_parser("match", help="Print names that belong to this project")
    match.add_argument("names", nargs="+")

    sub.add_parser("regions", help="Print US regions used by sweeps")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT, force=True)


def main(argv: list[str] | None = None, config: ProjectConfig | None = None) -> int:
    """
    CLI entry point.

    Returns:
        Process exit status (0 success, 1 failure).
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = (config or ProjectConfig()).load()
        if config["verbose"] and not args.verbose:
            configure_logging(True)
        identity = config.build_identity()
        if args.command == "names":
            return _cmd_names(args, config)
        if args.command == "accounts":
            return _cmd_accounts(args, config)
        if args.command == "match":
            return _cmd_match(args, config)
        if args.command == "regions":
            sweeper = RegionSweeper(region=identity.region)
            _print(sweeper.list_us_regions())
            return 0
    except RegistryError as e:
        logger.error("%s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid input: %s", e)
        return 1
    except (BotoCoreError, ClientError) as e:
        logger.error("AWS call failed: %s", e)
        return 1
    return 1


def _cmd_names(args: argparse.Namespace, config: ProjectConfig) -> int:
    names = derive(config.build_identity())
    output: dict[str, Any] = names.to_dict()
    output["resource_tags"] = names.resource_tags(config["resource_tags"])

    if args.env:
        env = validate_environment(args.env)
        per_env = {
            "lock_table": names.lock_table_name(env),
            "iam_role": names.iam_role_name(env),
            "readonly_role": names.readonly_role_name(env),
            "account_name": names.account_name(env),
        }
        if args.account_id:
            per_env["state_bucket"] = names.state_bucket_name(env, args.account_id)
            per_env["kms_key_alias"] = names.kms_key_alias(env, args.account_id)
        if args.email_domain:
            per_env["account_email"] = names.account_email(env, args.email_domain)
        output["environment"] = {env: per_env}

    _print(output)
    return 0


def _cmd_accounts(args: argparse.Namespace, config: ProjectConfig) -> int:
    path = args.accounts_file or config.accounts_file
    snapshot = load(path)
    dry_run = args.dry_run or bool(config["dry_run"])

    if args.accounts_command == "show":
        _print(snapshot.to_dict())
        return 0

    if args.accounts_command == "require":
        require_complete(snapshot)
        logger.info("All member accounts are set")
        return 0

    if args.accounts_command == "management":
        _print(resolve_management_account(config, snapshot))
        return 0

    if args.accounts_command == "members":
        account_filter = args.filter if args.filter is not None else config["account_filter"]
        _print(member_account_ids(snapshot, account_filter or ""))
        return 0

    if args.accounts_command == "bind":
        snapshot.bind(args.environment, args.account_id)
    elif args.accounts_command == "replace":
        snapshot.replace(args.environment, args.account_id, args.old_status)

    if dry_run:
        logger.info("[DRY RUN] Would write registry to %s", path)
        _print(snapshot.to_dict())
        return 0
    save(path, snapshot)
    return 0


def _cmd_match(args: argparse.Namespace, config: ProjectConfig) -> int:
    patterns = derive(config.build_identity()).project_patterns
    matching, _ = PatternMatcher.filter_project_resources(args.names, patterns)
    for name in matching:
        print(name)
    return 0 if matching else 1


def resolve_management_account(
    config: ProjectConfig,
    snapshot: RegistrySnapshot,
    caller: CallerIdentity | None = None,
) -> str:
    """Management account id from config, registry or current credentials."""
    caller = caller or CallerIdentity(region=config["region"])
    return caller.resolve_management_account(snapshot, config["management_account_id"])


def _print(value: Any) -> None:
    print(json.dumps(value, indent=2))


if __name__ == "__main__":
    sys.exit(main())
