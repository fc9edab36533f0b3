"""Tests for the org-registry CLI."""

import json
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from org_registry.config import ProjectConfig
from registry_cli import main, resolve_management_account

MGMT = "111111111111"
DEV = "222222222222"
STAGING = "333333333333"
PROD = "444444444444"


@pytest.fixture
def accounts_path(tmp_path):
    return tmp_path / "bootstrap" / "accounts.json"


@pytest.fixture
def config(accounts_path):
    return ProjectConfig(environ={"ACCOUNTS_FILE": str(accounts_path)})


def _write_accounts(path, **accounts):
    data = {"management": "", "dev": "", "staging": "", "prod": ""}
    data.update(accounts)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class TestNames:
    def test_prints_derived_names(self, config, capsys):
        assert main(["names"], config=config) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["iam_role_prefix"] == "GitHubActions-Demo-Cicd-Terraform"
        assert output["resource_tags"]["ManagedBy"] == "bootstrap-scripts"

    def test_per_environment_names(self, config, capsys):
        argv = ["names", "--env", "dev", "--account-id", DEV, "--email-domain", "example.com"]
        assert main(argv, config=config) == 0
        per_env = json.loads(capsys.readouterr().out)["environment"]["dev"]
        assert per_env["iam_role"] == "GitHubActions-Demo-Cicd-Terraform-Dev-Role"
        assert per_env["state_bucket"] == f"mhanyc-demo-cicd-terraform-state-dev-{DEV}"
        assert per_env["account_email"] == "aws+demo-cicd-terraform-dev@example.com"

    def test_test_environment_accepted(self, config, capsys):
        assert main(["names", "--env", "integration-test-42"], config=config) == 0

    def test_invalid_environment(self, config):
        assert main(["names", "--env", "qa"], config=config) == 1

    def test_invalid_short_name(self, accounts_path):
        config = ProjectConfig(environ={"PROJECT_SHORT_NAME": "NO"})
        assert main(["names"], config=config) == 1


class TestAccounts:
    def test_show_missing_registry(self, config, capsys):
        assert main(["accounts", "show"], config=config) == 0
        assert json.loads(capsys.readouterr().out)["dev"] == ""

    def test_require_incomplete(self, config, accounts_path):
        _write_accounts(accounts_path, management=MGMT)
        assert main(["accounts", "require"], config=config) == 1

    def test_require_complete(self, config, accounts_path):
        _write_accounts(accounts_path, dev=DEV, staging=STAGING, prod=PROD)
        assert main(["accounts", "require"], config=config) == 0

    def test_corrupt_registry(self, config, accounts_path):
        accounts_path.parent.mkdir(parents=True)
        accounts_path.write_text("not json")
        assert main(["accounts", "show"], config=config) == 1

    def test_bind_writes_registry(self, config, accounts_path):
        assert main(["accounts", "bind", "dev", DEV], config=config) == 0
        assert json.loads(accounts_path.read_text())["dev"] == DEV

    def test_bind_conflict(self, config, accounts_path):
        _write_accounts(accounts_path, dev=DEV)
        assert main(["accounts", "bind", "dev", PROD], config=config) == 1
        assert json.loads(accounts_path.read_text())["dev"] == DEV

    def test_replace_records_history(self, config, accounts_path):
        _write_accounts(accounts_path, dev=DEV)
        argv = ["accounts", "replace", "dev", "555555555555", "--old-status", "SUSPENDED"]
        assert main(argv, config=config) == 0
        data = json.loads(accounts_path.read_text())
        assert data["dev"] == "555555555555"
        assert data["_replaced"]["dev"]["old_account_id"] == DEV

    def test_dry_run_does_not_write(self, config, accounts_path):
        assert main(["--dry-run", "accounts", "bind", "dev", DEV], config=config) == 0
        assert not accounts_path.exists()

    def test_dry_run_from_environment(self, accounts_path):
        config = ProjectConfig(environ={"ACCOUNTS_FILE": str(accounts_path), "DRY_RUN": "true"})
        assert main(["accounts", "bind", "dev", DEV], config=config) == 0
        assert not accounts_path.exists()

    def test_members_with_filter(self, config, accounts_path, capsys):
        _write_accounts(accounts_path, dev=DEV, staging=STAGING, prod=PROD)
        assert main(["accounts", "members", "--filter", PROD], config=config) == 0
        assert json.loads(capsys.readouterr().out) == [PROD]

    def test_members_uses_account_filter_env(self, accounts_path, capsys):
        _write_accounts(accounts_path, dev=DEV, staging=STAGING, prod=PROD)
        config = ProjectConfig(environ={"ACCOUNTS_FILE": str(accounts_path), "ACCOUNT_FILTER": f"{DEV},{STAGING}"})
        assert main(["accounts", "members"], config=config) == 0
        assert json.loads(capsys.readouterr().out) == [DEV, STAGING]

    def test_management_from_registry(self, config, accounts_path, capsys):
        _write_accounts(accounts_path, management=MGMT)
        with patch("registry_cli.CallerIdentity") as mock_caller_cls:
            mock_caller_cls.return_value.resolve_management_account.return_value = MGMT
            assert main(["accounts", "management"], config=config) == 0
        assert json.loads(capsys.readouterr().out) == MGMT


class TestMatch:
    def test_prints_matching_names(self, config, capsys):
        argv = ["match", "demo-cicd-terraform-dev", "other-bucket", "GitHubActions-Foo"]
        assert main(argv, config=config) == 0
        assert capsys.readouterr().out.split() == ["demo-cicd-terraform-dev", "GitHubActions-Foo"]

    def test_no_matches_exit_1(self, config):
        assert main(["match", "other-bucket", "null"], config=config) == 1


class TestRegions:
    @patch("registry_cli.RegionSweeper")
    def test_prints_regions(self, mock_sweeper_cls, config, capsys):
        mock_sweeper_cls.return_value.list_us_regions.return_value = ["us-east-1", "us-west-2"]
        assert main(["regions"], config=config) == 0
        assert json.loads(capsys.readouterr().out) == ["us-east-1", "us-west-2"]
        mock_sweeper_cls.assert_called_once_with(region="us-east-1")


class TestAwsFailures:
    def test_sts_failure_exits_1(self, config, accounts_path):
        error = ClientError({"Error": {"Code": "ExpiredToken", "Message": "expired"}}, "GetCallerIdentity")
        with patch("registry_cli.CallerIdentity") as mock_caller_cls:
            mock_caller_cls.return_value.resolve_management_account.side_effect = error
            assert main(["accounts", "management"], config=config) == 1

    def test_missing_credentials_exits_1(self, config):
        with patch("registry_cli.CallerIdentity") as mock_caller_cls:
            mock_caller_cls.return_value.resolve_management_account.side_effect = NoCredentialsError()
            assert main(["accounts", "management"], config=config) == 1


class TestResolveManagementAccount:
    def test_configured_id_passed_through(self, accounts_path):
        config = ProjectConfig(environ={"ACCOUNTS_FILE": str(accounts_path), "MANAGEMENT_ACCOUNT_ID": MGMT}).load()
        caller = MagicMock()
        caller.resolve_management_account.return_value = MGMT
        snapshot = MagicMock()

        assert resolve_management_account(config, snapshot, caller) == MGMT
        caller.resolve_management_account.assert_called_once_with(snapshot, MGMT)
