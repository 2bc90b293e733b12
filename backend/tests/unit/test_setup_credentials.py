"""Tests for the credential setup script."""

from unittest.mock import MagicMock, patch

import pytest

from integrations.exceptions import ProviderAuthError
from scripts.setup_credentials import main, store_credentials, validate_dwolla, validate_plaid


class TestValidate:
    @patch("scripts.setup_credentials.PlaidClient")
    def test_validate_plaid_creates_link_token(self, mock_cls):
        validate_plaid("cid", "secret", "sandbox")

        mock_cls.assert_called_once_with("cid", "secret", "sandbox")
        mock_cls.return_value.create_link_token.assert_called_once()

    @patch("scripts.setup_credentials.PlaidClient")
    def test_validate_plaid_propagates_errors(self, mock_cls):
        mock_cls.return_value.create_link_token.side_effect = ProviderAuthError("bad", "Plaid")
        with pytest.raises(ProviderAuthError):
            validate_plaid("cid", "wrong", "sandbox")

    @patch("scripts.setup_credentials.DwollaClient")
    def test_validate_dwolla_closes_client(self, mock_cls):
        mock_cls.return_value.verify_credentials.side_effect = ProviderAuthError("bad", "Dwolla")

        with pytest.raises(ProviderAuthError):
            validate_dwolla("key", "secret", "sandbox")

        mock_cls.return_value.close.assert_called_once()


class TestStoreCredentials:
    @patch("scripts.setup_credentials.set_credential", return_value=True)
    @patch("builtins.input", return_value="")
    def test_default_answer_stores(self, _input, mock_set):
        store_credentials({"PLAID_SECRET": "s", "DWOLLA_KEY": "k"})
        assert mock_set.call_count == 2

    @patch("scripts.setup_credentials.set_credential")
    @patch("builtins.input", return_value="n")
    def test_declined(self, _input, mock_set):
        store_credentials({"PLAID_SECRET": "s"})
        mock_set.assert_not_called()


class TestMain:
    @patch("scripts.setup_credentials.store_credentials")
    @patch("scripts.setup_credentials.validate_dwolla")
    @patch("scripts.setup_credentials.validate_plaid")
    def test_happy_path(self, mock_plaid, mock_dwolla, mock_store):
        answers = iter(["cid", "psecret", "1", "dkey", "dsecret", "2"])
        with patch("builtins.input", lambda _: next(answers)):
            main()

        mock_plaid.assert_called_once_with("cid", "psecret", "sandbox")
        mock_dwolla.assert_called_once_with("dkey", "dsecret", "production")
        stored = mock_store.call_args[0][0]
        assert stored == {
            "PLAID_CLIENT_ID": "cid",
            "PLAID_SECRET": "psecret",
            "DWOLLA_KEY": "dkey",
            "DWOLLA_SECRET": "dsecret",
        }

    @patch("scripts.setup_credentials.store_credentials")
    @patch("scripts.setup_credentials.validate_dwolla")
    @patch("scripts.setup_credentials.validate_plaid")
    def test_invalid_plaid_exits(self, mock_plaid, mock_dwolla, mock_store):
        mock_plaid.side_effect = ProviderAuthError("bad keys", "Plaid")
        answers = iter(["cid", "psecret", "", "dkey", "dsecret", ""])
        with patch("builtins.input", lambda _: next(answers)):
            with pytest.raises(SystemExit):
                main()
        mock_dwolla.assert_not_called()
        mock_store.assert_not_called()

    def test_missing_value_exits(self):
        with patch("builtins.input", MagicMock(return_value="")):
            with pytest.raises(SystemExit):
                main()
