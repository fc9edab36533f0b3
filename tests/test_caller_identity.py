"""Tests for CallerIdentity."""

from unittest.mock import MagicMock

from org_registry.account_registry import RegistrySnapshot
from org_registry.caller_identity import CallerIdentity


def _make_session(account_id="999999999999"):
    mock_session = MagicMock()
    mock_sts = MagicMock()
    mock_session.client.return_value = mock_sts
    mock_sts.get_caller_identity.return_value = {
        "Account": account_id,
        "Arn": f"arn:aws:iam::{account_id}:user/operator",
    }
    return mock_session, mock_sts


class TestResolveManagementAccount:
    def test_configured_value_wins(self):
        session, sts = _make_session()
        snapshot = RegistrySnapshot()
        snapshot.bind("management", "111111111111")

        result = CallerIdentity(session=session).resolve_management_account(snapshot, "123123123123")

        assert result == "123123123123"
        sts.get_caller_identity.assert_not_called()

    def test_registry_value_used(self):
        session, sts = _make_session()
        snapshot = RegistrySnapshot()
        snapshot.bind("management", "111111111111")

        assert CallerIdentity(session=session).resolve_management_account(snapshot) == "111111111111"
        sts.get_caller_identity.assert_not_called()

    def test_falls_back_to_credentials(self):
        session, sts = _make_session("999999999999")
        snapshot = RegistrySnapshot()

        assert CallerIdentity(session=session).resolve_management_account(snapshot) == "999999999999"
        sts.get_caller_identity.assert_called_once_with()
        assert snapshot.management == ""


class TestGetAccountId:
    def test_uses_sts_client(self):
        session, _ = _make_session("555555555555")
        assert CallerIdentity(session=session, region="us-west-2").get_account_id() == "555555555555"
        session.client.assert_called_once()
        assert session.client.call_args.args[0] == "sts"
        assert session.client.call_args.kwargs["region_name"] == "us-west-2"
