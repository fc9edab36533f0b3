"""
Project Configuration

Loads project defaults from YAML and applies environment variable
overrides on top.

Hierarchy (highest priority first):
  1. Environment variables (GitHub Actions repository variables)
  2. defaults.yaml shipped with the package
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .identity import ProjectIdentity

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULTS_PATH = Path(__file__).resolve().parent / "defaults.yaml"

# execution key -> environment variable
EXECUTION_ENV_VARS = {
    "dry_run": "DRY_RUN",
    "verbose": "VERBOSE",
    "skip_verification": "SKIP_VERIFICATION",
    "force_destroy": "FORCE_DESTROY",
    "include_cross_account": "INCLUDE_CROSS_ACCOUNT",
    "close_member_accounts": "CLOSE_MEMBER_ACCOUNTS",
    "cleanup_terraform_state": "CLEANUP_TERRAFORM_STATE",
    "account_filter": "ACCOUNT_FILTER",
    "s3_timeout": "S3_TIMEOUT",
}

TRUE_VALUES = {"true", "1", "yes"}


class ProjectConfig:
    """Resolved project configuration (defaults file + environment)."""

    def __init__(
        self,
        defaults_path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """
        Args:
            defaults_path: Path to the defaults YAML file.
                           Defaults to the packaged defaults.yaml.
            environ: Environment mapping, os.environ when omitted.
        """
        self._path = Path(defaults_path) if defaults_path is not None else DEFAULTS_PATH
        self._environ = environ if environ is not None else os.environ
        self._values: dict[str, Any] = {}
        self._loaded = False

    def load(self) -> "ProjectConfig":
        """Read defaults.yaml and apply environment overrides."""
        with open(self._path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        project = data.get("project", {})
        accounts = data.get("accounts", {})
        execution = data.get("execution", {})
        env = self._environ

        repository = env.get("REPO_FULL_NAME") or env.get("GITHUB_REPO") or project.get("repository", "")
        values: dict[str, Any] = {
            "repository": repository,
            "owner": env.get("REPO_OWNER") or env.get("GITHUB_OWNER") or "",
            "short_name": env.get("PROJECT_SHORT_NAME") or project.get("short_name", ""),
            "project_name": env.get("PROJECT_NAME", ""),
            "external_id": env.get("EXTERNAL_ID", ""),
            "region": env.get("AWS_DEFAULT_REGION") or project.get("region", "us-east-1"),
            "management_account_id": env.get("MANAGEMENT_ACCOUNT_ID", ""),
            "accounts_file": env.get("ACCOUNTS_FILE") or accounts.get("file", "bootstrap/accounts.json"),
            "resource_tags": self._parse_json_object(env, "RESOURCE_TAGS_JSON"),
            "contact_info": self._parse_json_object(env, "CONTACT_INFO_JSON") or {},
        }

        for key, var in EXECUTION_ENV_VARS.items():
            default = execution.get(key)
            raw = env.get(var)
            if raw is None or raw == "":
                values[key] = default
            elif isinstance(default, bool):
                values[key] = raw.strip().lower() in TRUE_VALUES
            elif isinstance(default, int):
                values[key] = int(raw)
            else:
                values[key] = raw

        self._values = values
        self._loaded = True
        logger.debug("Loaded project configuration from %s", self._path)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        self._ensure_loaded()
        return self._values.get(key, default)

    def __getitem__(self, key: str) -> Any:
        self._ensure_loaded()
        return self._values[key]

    @property
    def accounts_file(self) -> Path:
        return Path(self["accounts_file"])

    def build_identity(self) -> ProjectIdentity:
        """Build the ProjectIdentity passed to every naming function."""
        self._ensure_loaded()
        return ProjectIdentity(
            repository_full_name=self["repository"],
            short_name=self["short_name"],
            region=self["region"],
            project_name=self["project_name"],
            owner=self["owner"],
            external_id=self["external_id"],
        )

    def _ensure_loaded(self) -> None:
        """Auto-load if not yet loaded."""
        if not self._loaded:
            self.load()

    @staticmethod
    def _parse_json_object(env: Mapping[str, str], var: str) -> dict[str, Any] | None:
        raw = env.get(var)
        if not raw:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"{var} is not valid JSON: {e}") from e
        if not isinstance(value, dict):
            raise ValueError(f"{var} must be a JSON object")
        return value
