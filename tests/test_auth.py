"""Unit tests for gateway authentication and principal extraction."""

from unittest.mock import patch

import pytest

from vaultgate.core.auth import (
    get_principal,
    parse_api_keys,
    require_admin,
    validate_api_key,
    verify_api_key,
)
from vaultgate.core.errors import AuthenticationAppError, PermissionAppError
from vaultgate.domain.limits import Principal, Role


class TestParseAPIKeys:
    """Test API key parsing utility function."""

    def test_parse_multiple_keys(self) -> None:
        assert parse_api_keys("key1,key2,key3") == {"key1", "key2", "key3"}

    def test_parse_keys_with_whitespace(self) -> None:
        assert parse_api_keys("key1 , key2  ,  key3") == {"key1", "key2", "key3"}

    @pytest.mark.parametrize("raw", [None, "", "   ,  ,  "])
    def test_parse_empty_inputs(self, raw) -> None:
        assert parse_api_keys(raw) == set()

    def test_parse_removes_duplicate_keys(self) -> None:
        assert parse_api_keys("key1,key2,key1") == {"key1", "key2"}


class TestValidateAPIKey:
    """Test core API key validation logic."""

    @patch("vaultgate.core.auth.settings")
    def test_validate_bypassed_when_auth_disabled(self, mock_settings) -> None:
        mock_settings.app.api_key_required = False

        validate_api_key("any-random-key")
        validate_api_key(None)

    @pytest.mark.parametrize("configured", [None, ""])
    @patch("vaultgate.core.auth.settings")
    def test_validate_raises_when_no_keys_configured(self, mock_settings, configured) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = configured

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("some-key")

        assert exc_info.value.code == "api_keys_not_configured"

    @patch("vaultgate.core.auth.settings")
    def test_validate_accepts_valid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key-1,valid-key-2"

        validate_api_key("valid-key-1")
        validate_api_key("valid-key-2")

    @patch("vaultgate.core.auth.settings")
    def test_validate_rejects_invalid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key-1,valid-key-2"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("invalid-key")

        assert exc_info.value.code == "invalid_api_key"

    @pytest.mark.parametrize("provided", [None, ""])
    @patch("vaultgate.core.auth.settings")
    def test_validate_rejects_missing_key(self, mock_settings, provided) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key(provided)

        assert exc_info.value.code == "missing_api_key"

    @patch("vaultgate.core.auth.settings")
    def test_validate_handles_whitespace_in_configured_keys(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = " key1 , key2 "

        validate_api_key("key1")
        with pytest.raises(AuthenticationAppError):
            validate_api_key(" key1 ")


class TestVerifyAPIKeyDependency:
    """Test FastAPI dependency for API key verification."""

    @patch("vaultgate.core.auth.settings")
    def test_verify_bypassed_when_auth_disabled(self, mock_settings) -> None:
        mock_settings.app.api_key_required = False

        verify_api_key(x_api_key=None)

    @patch("vaultgate.core.auth.settings")
    def test_verify_raises_when_key_invalid(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError):
            verify_api_key(x_api_key="wrong-key")

    @patch("vaultgate.core.auth.settings")
    def test_verify_accepts_valid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "my-valid-key,another-key"

        verify_api_key(x_api_key="another-key")


class TestPrincipal:
    def test_principal_from_headers(self) -> None:
        principal = get_principal(x_user_id=" u1 ", x_user_role="Owner")

        assert principal == Principal(user_id="u1", role=Role.OWNER)

    def test_role_defaults_to_user(self) -> None:
        assert get_principal(x_user_id="u1", x_user_role=None).role is Role.USER

    @pytest.mark.parametrize("user_id", [None, "", "   "])
    def test_missing_user_id(self, user_id) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            get_principal(x_user_id=user_id, x_user_role="user")

        assert exc_info.value.code == "missing_principal"

    def test_unknown_role(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            get_principal(x_user_id="u1", x_user_role="superuser")

        assert exc_info.value.code == "invalid_role"

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.OWNER])
    def test_require_admin_allows_admins_and_owners(self, role) -> None:
        principal = Principal(user_id="u1", role=role)

        assert require_admin(principal) is principal

    def test_require_admin_rejects_users(self) -> None:
        with pytest.raises(PermissionAppError):
            require_admin(Principal(user_id="u1", role=Role.USER))
