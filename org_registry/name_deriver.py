"""
Name Deriver

Derives every resource-naming string used by the bootstrap and destroy
tooling from a ProjectIdentity. The title-casing rule must stay identical
to Terraform's title() so both tools agree on IAM role names:
"static-site" -> "Static-Site".
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .identity import ProjectIdentity

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Shared substrings that mark bootstrap-managed resources in any project
COMMON_PROJECT_PATTERNS = ("terraform-state", "GitHubActions", "cloudtrail-logs")

MANAGED_BY_TAG = "bootstrap-scripts"


def title_case(value: str) -> str:
    """Uppercase the first character of each hyphen-delimited segment."""
    return "-".join(segment[:1].upper() + segment[1:] for segment in value.split("-"))


@dataclass(frozen=True)
class DerivedNames:
    """Naming prefixes and templates for one project. Never persisted."""

    short_name: str
    repository_full_name: str
    full_project_name: str
    project_ou_name: str
    external_id: str
    state_bucket_prefix: str
    lock_table_prefix: str
    kms_key_prefix: str
    iam_role_prefix: str
    readonly_role_prefix: str
    account_name_prefix: str
    account_email_prefix: str
    project_patterns: frozenset[str] = field(default_factory=frozenset)

    def state_bucket_name(self, environment: str, account_id: str) -> str:
        return f"{self.state_bucket_prefix}-state-{environment}-{account_id}"

    def lock_table_name(self, environment: str) -> str:
        return f"{self.lock_table_prefix}-locks-{environment}"

    def kms_key_alias(self, environment: str, account_id: str) -> str:
        return f"{self.kms_key_prefix}-state-{environment}-{account_id}"

    def iam_role_name(self, environment: str) -> str:
        """GitHubActions-{Project}-{Env}-Role"""
        return f"{self.iam_role_prefix}-{title_case(environment)}-Role"

    def readonly_role_name(self, environment: str) -> str:
        return f"{self.readonly_role_prefix}-{environment}"

    def account_name(self, environment: str) -> str:
        return f"{self.account_name_prefix}-{environment}"

    def account_email(self, environment: str, domain: str) -> str:
        return f"{self.account_email_prefix}-{environment}@{domain}"

    def foundation_state_bucket(self, management_account_id: str) -> str:
        """Central bucket holding foundation (OIDC, IAM, org) state."""
        return f"{self.full_project_name}-terraform-state-{management_account_id}"

    def resource_tags(self, overrides: dict[str, str] | None = None) -> dict[str, str]:
        """Tags applied to AWS Organizations resources (OUs, accounts)."""
        if overrides is not None:
            return dict(overrides)
        return {
            "ManagedBy": MANAGED_BY_TAG,
            "Repository": self.repository_full_name,
            "Project": self.short_name,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "short_name": self.short_name,
            "full_project_name": self.full_project_name,
            "project_ou_name": self.project_ou_name,
            "external_id": self.external_id,
            "state_bucket_prefix": self.state_bucket_prefix,
            "lock_table_prefix": self.lock_table_prefix,
            "kms_key_prefix": self.kms_key_prefix,
            "iam_role_prefix": self.iam_role_prefix,
            "readonly_role_prefix": self.readonly_role_prefix,
            "account_name_prefix": self.account_name_prefix,
            "account_email_prefix": self.account_email_prefix,
            "project_patterns": sorted(self.project_patterns),
        }


def derive(identity: ProjectIdentity) -> DerivedNames:
    """
    Derive all naming strings for a project.

    Args:
        identity: Validated project identity.

    Returns:
        DerivedNames bundle. Same input always yields an equal bundle.
    """
    short_name = identity.short_name
    full_project_name = identity.project_name or f"{identity.owner_lower}-{identity.repository_name}"
    titled = title_case(short_name)

    names = DerivedNames(
        short_name=short_name,
        repository_full_name=identity.repository_full_name,
        full_project_name=full_project_name,
        project_ou_name=identity.repository_name,
        external_id=identity.external_id or f"github-actions-{short_name}",
        state_bucket_prefix=full_project_name,
        lock_table_prefix=full_project_name,
        kms_key_prefix=full_project_name,
        iam_role_prefix=f"GitHubActions-{titled}",
        readonly_role_prefix=titled,
        account_name_prefix=short_name,
        account_email_prefix=f"aws+{short_name}",
        project_patterns=frozenset((short_name, full_project_name, titled, *COMMON_PROJECT_PATTERNS)),
    )
    logger.debug("Derived names for %s: %s", short_name, names.to_dict())
    return names
