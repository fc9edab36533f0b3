"""Tests for RegionSweeper."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from org_registry.errors import RegionSweepError
from org_registry.region_sweeper import FALLBACK_US_REGIONS, RegionSweeper


def _make_session(regions=None, error=None):
    mock_session = MagicMock()
    mock_ec2 = MagicMock()
    mock_session.client.return_value = mock_ec2
    if error is not None:
        mock_ec2.describe_regions.side_effect = error
    else:
        mock_ec2.describe_regions.return_value = {
            "Regions": [{"RegionName": r} for r in regions or []]
        }
    return mock_session, mock_ec2


class TestListUsRegions:
    def test_filters_us_regions(self):
        session, _ = _make_session(["eu-west-1", "us-west-2", "us-east-1", "ap-south-1"])
        assert RegionSweeper(session=session).list_us_regions() == ["us-east-1", "us-west-2"]

    def test_uses_configured_region_for_client(self):
        session, _ = _make_session(["us-east-1"])
        RegionSweeper(session=session, region="us-west-2").list_us_regions()
        assert session.client.call_args.args[0] == "ec2"
        assert session.client.call_args.kwargs["region_name"] == "us-west-2"

    def test_client_error_falls_back(self):
        error = ClientError({"Error": {"Code": "UnauthorizedOperation", "Message": "denied"}}, "DescribeRegions")
        session, _ = _make_session(error=error)
        assert RegionSweeper(session=session).list_us_regions() == FALLBACK_US_REGIONS

    def test_connection_error_falls_back(self):
        session, _ = _make_session(error=EndpointConnectionError(endpoint_url="https://ec2"))
        assert RegionSweeper(session=session).list_us_regions() == FALLBACK_US_REGIONS

    def test_empty_response_falls_back(self):
        session, _ = _make_session([])
        assert RegionSweeper(session=session).list_us_regions() == FALLBACK_US_REGIONS


class TestSweep:
    def test_visits_regions_in_order(self):
        visited = []
        sweeper = RegionSweeper(session=MagicMock())
        result = sweeper.sweep(lambda region: visited.append(region) or region.upper(), ["us-east-1", "us-west-2"])

        assert visited == ["us-east-1", "us-west-2"]
        assert result.succeeded == {"us-east-1": "US-EAST-1", "us-west-2": "US-WEST-2"}
        assert result.failed == {}

    def test_failure_does_not_abort_remaining_regions(self):
        visited = []

        def cleanup(region):
            visited.append(region)
            if region == "us-east-2":
                raise RuntimeError("throttled")
            return "ok"

        result = RegionSweeper(session=MagicMock()).sweep(cleanup, ["us-east-1", "us-east-2", "us-west-1"])

        assert visited == ["us-east-1", "us-east-2", "us-west-1"]
        assert set(result.succeeded) == {"us-east-1", "us-west-1"}
        assert isinstance(result.failed["us-east-2"], RuntimeError)
        assert result.regions == ["us-east-1", "us-west-1", "us-east-2"]

    def test_all_regions_failing_raises(self):
        def cleanup(region):
            raise RuntimeError(f"boom in {region}")

        with pytest.raises(RegionSweepError, match="every region") as exc_info:
            RegionSweeper(session=MagicMock()).sweep(cleanup, ["us-east-1", "us-west-2"])
        assert set(exc_info.value.failures) == {"us-east-1", "us-west-2"}

    def test_defaults_to_us_regions(self):
        session, _ = _make_session(["us-east-1", "eu-west-1"])
        result = RegionSweeper(session=session).sweep(lambda region: True)
        assert list(result.succeeded) == ["us-east-1"]

    def test_empty_region_list(self):
        result = RegionSweeper(session=MagicMock()).sweep(lambda region: True, [])
        assert result.succeeded == {}
        assert result.failed == {}
