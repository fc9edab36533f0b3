"""
Caller Identity

Resolves the management account id. Order of precedence:
  1. MANAGEMENT_ACCOUNT_ID from configuration
  2. "management" in accounts.json
  3. The account of the current AWS credentials (STS)
"""

import logging

import boto3
from botocore.config import Config

from .account_registry import RegistrySnapshot

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

BOTO_CONFIG = Config(
    retries={"max_attempts": 5, "mode": "adaptive"},
)


class CallerIdentity:
    """Looks up the caller's AWS account via STS."""

    def __init__(self, session: boto3.Session | None = None, region: str = "us-east-1"):
        self._session = session or boto3.Session()
        self._region = region

    def get_account_id(self) -> str:
        client = self._session.client("sts", region_name=self._region, config=BOTO_CONFIG)
        identity = client.get_caller_identity()
        account_id = str(identity["Account"])
        logger.info("Current credentials belong to account %s (%s)", account_id, identity.get("Arn", ""))
        return account_id

    def resolve_management_account(self, snapshot: RegistrySnapshot, configured: str = "") -> str:
        """
        Determine the management account id without modifying the registry.

        Args:
            snapshot: Loaded registry.
            configured: Explicitly configured id (MANAGEMENT_ACCOUNT_ID).

        Returns:
            12-digit management account id.
        """
        if configured:
            return configured
        if snapshot.management:
            return snapshot.management
        logger.info("Management account not configured; detecting from credentials")
        return self.get_account_id()
