"""
Region Sweeper

Runs a callback sequentially in every US AWS region. A failing region is
logged and recorded, and the sweep continues with the remaining regions.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import RegionSweepError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

BOTO_CONFIG = Config(
    retries={"max_attempts": 5, "mode": "adaptive"},
)

FALLBACK_US_REGIONS = ["us-east-1", "us-east-2", "us-west-1", "us-west-2"]


@dataclass
class SweepResult:
    """Outcome of a sweep: callback results and failures keyed by region."""

    succeeded: dict[str, Any] = field(default_factory=dict)
    failed: dict[str, Exception] = field(default_factory=dict)

    @property
    def regions(self) -> list[str]:
        return [*self.succeeded, *self.failed]


class RegionSweeper:
    """Enumerates US regions and sweeps a callback across them."""

    def __init__(self, session: boto3.Session | None = None, region: str = "us-east-1"):
        self._session = session or boto3.Session()
        self._region = region

    def list_us_regions(self) -> list[str]:
        """
        List enabled US regions via EC2 describe_regions.

        Falls back to the four standard US regions when the API call fails.
        """
        try:
            client = self._session.client("ec2", region_name=self._region, config=BOTO_CONFIG)
            response = client.describe_regions()
        except (ClientError, BotoCoreError) as e:
            logger.warning("describe_regions failed, using default US regions: %s", e)
            return list(FALLBACK_US_REGIONS)

        regions = sorted(
            r["RegionName"] for r in response.get("Regions", []) if r.get("RegionName", "").startswith("us-")
        )
        logger.info("Found %d US regions: %s", len(regions), " ".join(regions))
        return regions or list(FALLBACK_US_REGIONS)

    def sweep(
        self,
        callback: Callable[[str], Any],
        regions: Iterable[str] | None = None,
    ) -> SweepResult:
        """
        Call `callback(region)` for each region, one at a time.

        Args:
            callback: Per-region operation; receives the region name.
            regions: Regions to visit. Defaults to list_us_regions().

        Returns:
            SweepResult with per-region return values and failures.

        Raises:
            RegionSweepError: If every region failed.
        """
        region_list = list(regions) if regions is not None else self.list_us_regions()
        name = getattr(callback, "__name__", repr(callback))
        logger.info("Executing %s across %d regions...", name, len(region_list))

        result = SweepResult()
        for region in region_list:
            logger.info("Processing region: %s", region)
            try:
                result.succeeded[region] = callback(region)
            except Exception as e:
                logger.exception("%s failed in region %s", name, region)
                result.failed[region] = e

        if region_list and not result.succeeded:
            raise RegionSweepError(
                f"{name} failed in every region: {', '.join(result.failed)}",
                result.failed,
            )

        if result.failed:
            logger.warning(
                "%s completed with failures in %d of %d regions",
                name,
                len(result.failed),
                len(region_list),
            )
        return result
