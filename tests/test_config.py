"""Tests for gateway configuration."""

from __future__ import annotations

import pytest

from pyhomegateway.config import GatewayConfig, OAuthClientConfig
from pyhomegateway.const import DEFAULT_TIMEOUT, HUBITAT_CANDIDATE_HOSTS, HUE_PAIRING_ATTEMPTS
from pyhomegateway.models import Platform


class TestOAuthClientConfig:
    """Test OAuth2 client registrations."""

    def test_default_redirect_uri(self) -> None:
        """Test the gateway callback scheme default."""
        client = OAuthClientConfig(client_id="id")

        assert client.redirect_uri_for(Platform.RING) == "pyhomegateway://oauth/ring"

    def test_registered_redirect_uri(self) -> None:
        """Test an explicit redirect URI."""
        client = OAuthClientConfig(client_id="id", redirect_uri="http://127.0.0.1:8765/oauth")

        assert client.redirect_uri_for(Platform.NEST) == "http://127.0.0.1:8765/oauth"

    def test_secret_hidden_from_repr(self) -> None:
        """Test that the client secret is not printed."""
        assert "top-secret" not in repr(OAuthClientConfig(client_id="id", client_secret="top-secret"))


class TestFromEnv:
    """Test GatewayConfig.from_env()."""

    def test_defaults(self) -> None:
        """Test an empty environment."""
        config = GatewayConfig.from_env({})

        assert config.oauth == {}
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.hue_pairing_attempts == HUE_PAIRING_ATTEMPTS
        assert config.hubitat_candidates == HUBITAT_CANDIDATE_HOSTS
        assert config.nest_project_id is None
        assert config.oauth_for(Platform.NEST) is None

    def test_oauth_clients(self) -> None:
        """Test reading client registrations."""
        config = GatewayConfig.from_env(
            {
                "PYHOMEGATEWAY_NEST_CLIENT_ID": "nest-id",
                "PYHOMEGATEWAY_NEST_CLIENT_SECRET": "nest-secret",
                "PYHOMEGATEWAY_NEST_REDIRECT_URI": "http://127.0.0.1:8765/oauth",
                "PYHOMEGATEWAY_SMARTTHINGS_CLIENT_ID": "st-id",
                "PYHOMEGATEWAY_SMARTTHINGS_SCOPE": "r:devices:*",
            }
        )

        assert config.oauth_for(Platform.NEST) == OAuthClientConfig(
            client_id="nest-id",
            client_secret="nest-secret",
            redirect_uri="http://127.0.0.1:8765/oauth",
        )
        smartthings = config.oauth_for(Platform.SMARTTHINGS)
        assert smartthings is not None
        assert smartthings.scope == "r:devices:*"
        assert smartthings.client_secret == ""

    def test_non_oauth_platforms_ignored(self) -> None:
        """Test that key and local platforms never get a client registration."""
        config = GatewayConfig.from_env(
            {
                "PYHOMEGATEWAY_LIFX_CLIENT_ID": "ignored",
                "PYHOMEGATEWAY_HUBITAT_CLIENT_ID": "ignored",
            }
        )

        assert config.oauth == {}

    def test_local_settings(self) -> None:
        """Test timeouts, pairing and host lists."""
        config = GatewayConfig.from_env(
            {
                "PYHOMEGATEWAY_TIMEOUT": "12.5",
                "PYHOMEGATEWAY_HUE_PAIRING_ATTEMPTS": "15",
                "PYHOMEGATEWAY_HUE_PAIRING_INTERVAL": "0.5",
                "PYHOMEGATEWAY_HUBITAT_APP_ID": "42",
                "PYHOMEGATEWAY_HUE_HOSTS": "10.0.0.2, 10.0.0.3,",
                "PYHOMEGATEWAY_HUBITAT_HOSTS": "hub.local",
                "PYHOMEGATEWAY_NEST_PROJECT_ID": "project-1",
            }
        )

        assert config.timeout == 12.5
        assert config.hue_pairing_attempts == 15
        assert config.hue_pairing_interval == 0.5
        assert config.hubitat_app_id == "42"
        assert config.hue_candidates == ("10.0.0.2", "10.0.0.3")
        assert config.hubitat_candidates == ("hub.local",)
        assert config.nest_project_id == "project-1"

    def test_invalid_number(self) -> None:
        """Test that malformed numbers are reported."""
        with pytest.raises(ValueError):
            GatewayConfig.from_env({"PYHOMEGATEWAY_TIMEOUT": "soon"})
