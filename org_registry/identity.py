"""
Project Identity

Immutable description of the project that every derived name is built
from. Constructed once at process start and passed explicitly.
"""

import re
from dataclasses import dataclass

from .errors import InvalidIdentityError

SHORT_NAME_PATTERN = re.compile(r"^[a-z0-9-]{3,50}$")

# Mirrors the declarative variable contract for `environment`
ENVIRONMENT_PATTERN = re.compile(r"^(dev|staging|prod|(integration-test|unit-test)-[0-9]+)$")


@dataclass(frozen=True)
class ProjectIdentity:
    """
    Project identity inputs.

    Attributes:
        repository_full_name: GitHub repository in "owner/repo" form.
        short_name: Lowercase kebab project name used inside accounts.
        region: Default AWS region.
        project_name: Optional full project name override
                      (defaults to "{owner-lowercase}-{repo}").
        owner: Optional repository owner override.
        external_id: Optional cross-account external id override.
    """

    repository_full_name: str
    short_name: str
    region: str = "us-east-1"
    project_name: str = ""
    owner: str = ""
    external_id: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.short_name, str) or not SHORT_NAME_PATTERN.match(self.short_name):
            raise InvalidIdentityError(
                f"Invalid project short name {self.short_name!r}: "
                "must match ^[a-z0-9-]{3,50}$"
            )

    @property
    def owner_lower(self) -> str:
        """Repository owner, lowercased (text before the first '/')."""
        owner = self.owner or self.repository_full_name.split("/", 1)[0]
        return owner.lower()

    @property
    def repository_name(self) -> str:
        """Repository name (text after the last '/')."""
        return self.repository_full_name.rsplit("/", 1)[-1]


def validate_environment(environment: str) -> str:
    """
    Check an environment name against the deployment tier contract.

    Raises:
        ValueError: If the name is not dev, staging, prod or a test tier.
    """
    if not ENVIRONMENT_PATTERN.match(environment or ""):
        raise ValueError(
            f"Invalid environment {environment!r}: expected dev, staging, prod "
            "or (integration-test|unit-test)-<n>"
        )
    return environment
