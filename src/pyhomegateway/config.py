"""Gateway configuration.

Everything here can be passed explicitly. :meth:`GatewayConfig.from_env` builds
a config from ``PYHOMEGATEWAY_*`` environment variables, for example::

    PYHOMEGATEWAY_NEST_CLIENT_ID=...
    PYHOMEGATEWAY_NEST_CLIENT_SECRET=...
    PYHOMEGATEWAY_NEST_REDIRECT_URI=http://127.0.0.1:8765/oauth/nest
    PYHOMEGATEWAY_TIMEOUT=20
    PYHOMEGATEWAY_HUE_PAIRING_ATTEMPTS=15
    PYHOMEGATEWAY_HUBITAT_HOSTS=192.168.1.40,192.168.1.41
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pyhomegateway.const import (
    DEFAULT_REDIRECT_URI_TEMPLATE,
    DEFAULT_TIMEOUT,
    HUBITAT_CANDIDATE_HOSTS,
    HUBITAT_MAKER_APP_ID,
    HUE_CANDIDATE_HOSTS,
    HUE_PAIRING_ATTEMPTS,
    HUE_PAIRING_INTERVAL,
)
from pyhomegateway.models import AuthType, Platform


if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "PYHOMEGATEWAY_"


def _hosts(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    """Parse a comma-separated host list."""
    if not value:
        return default
    return tuple(host.strip() for host in value.split(",") if host.strip())


@dataclass(frozen=True)
class OAuthClientConfig:
    """OAuth2 client registration for one platform.

    Attributes:
        client_id: Client id issued by the platform.
        client_secret: Client secret, empty for public clients.
        redirect_uri: Redirect URI registered with the platform.
        scope: Scope override, None to use the platform default.
    """

    client_id: str
    client_secret: str = field(default="", repr=False)
    redirect_uri: str | None = None
    scope: str | None = None

    def redirect_uri_for(self, platform: Platform) -> str:
        """Get the redirect URI, defaulting to the gateway callback scheme."""
        return self.redirect_uri or DEFAULT_REDIRECT_URI_TEMPLATE.format(platform=platform.value)


@dataclass
class GatewayConfig:
    """Configuration shared by the registry and its adapters.

    Attributes:
        oauth: OAuth2 client registrations keyed by platform.
        timeout: Total HTTP timeout in seconds.
        hue_pairing_attempts: How many times bridge pairing is tried before
            the link-button error is surfaced.
        hue_pairing_interval: Seconds between bridge pairing attempts.
        hubitat_app_id: Id of the Hubitat Maker API app instance.
        hue_candidates: Hosts probed for a Hue bridge when cloud discovery fails.
        hubitat_candidates: Hosts probed for a Hubitat hub.
        nest_project_id: Google Device Access project id.
    """

    oauth: dict[Platform, OAuthClientConfig] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    hue_pairing_attempts: int = HUE_PAIRING_ATTEMPTS
    hue_pairing_interval: float = HUE_PAIRING_INTERVAL
    hubitat_app_id: str = HUBITAT_MAKER_APP_ID
    hue_candidates: tuple[str, ...] = HUE_CANDIDATE_HOSTS
    hubitat_candidates: tuple[str, ...] = HUBITAT_CANDIDATE_HOSTS
    nest_project_id: str | None = None

    def oauth_for(self, platform: Platform) -> OAuthClientConfig | None:
        """Get the OAuth2 registration for a platform, if configured."""
        return self.oauth.get(platform)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GatewayConfig:
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Configuration with every OAuth2 platform whose client id is set.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ

        oauth: dict[Platform, OAuthClientConfig] = {}
        for platform in Platform:
            if platform.auth_type is not AuthType.OAUTH2:
                continue
            prefix = f"{ENV_PREFIX}{platform.name}_"
            client_id = env.get(f"{prefix}CLIENT_ID")
            if not client_id:
                continue
            oauth[platform] = OAuthClientConfig(
                client_id=client_id,
                client_secret=env.get(f"{prefix}CLIENT_SECRET", ""),
                redirect_uri=env.get(f"{prefix}REDIRECT_URI"),
                scope=env.get(f"{prefix}SCOPE"),
            )

        return cls(
            oauth=oauth,
            timeout=float(env.get(f"{ENV_PREFIX}TIMEOUT", DEFAULT_TIMEOUT)),
            hue_pairing_attempts=int(env.get(f"{ENV_PREFIX}HUE_PAIRING_ATTEMPTS", HUE_PAIRING_ATTEMPTS)),
            hue_pairing_interval=float(env.get(f"{ENV_PREFIX}HUE_PAIRING_INTERVAL", HUE_PAIRING_INTERVAL)),
            hubitat_app_id=env.get(f"{ENV_PREFIX}HUBITAT_APP_ID", HUBITAT_MAKER_APP_ID),
            hue_candidates=_hosts(env.get(f"{ENV_PREFIX}HUE_HOSTS"), HUE_CANDIDATE_HOSTS),
            hubitat_candidates=_hosts(env.get(f"{ENV_PREFIX}HUBITAT_HOSTS"), HUBITAT_CANDIDATE_HOSTS),
            nest_project_id=env.get(f"{ENV_PREFIX}NEST_PROJECT_ID") or None,
        )
