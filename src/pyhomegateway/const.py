"""Constants for pyhomegateway library."""

from __future__ import annotations


# HTTP Configuration
DEFAULT_TIMEOUT = 30  # seconds
PROBE_TIMEOUT = 3  # seconds, local-network host probes
DEFAULT_RATE_LIMIT_DELAY = 60.0  # seconds when Retry-After is missing or unparseable

# OAuth2
CALLBACK_SCHEME = "pyhomegateway"
DEFAULT_REDIRECT_URI_TEMPLATE = CALLBACK_SCHEME + "://oauth/{platform}"
OAUTH_STATE_BYTES = 16

# LIFX
LIFX_BASE_URL = "https://api.lifx.com/v1"

# Philips Hue
HUE_DISCOVERY_URL = "https://discovery.meethue.com/"
HUE_DEVICE_TYPE = "pyhomegateway#python"
HUE_LINK_BUTTON_ERROR = 101
HUE_PAIRING_ATTEMPTS = 1
HUE_PAIRING_INTERVAL = 2.0  # seconds between pairing attempts
HUE_BRIGHTNESS_MAX = 254
HUE_CANDIDATE_HOSTS = (
    "192.168.1.2",
    "192.168.1.3",
    "192.168.1.4",
    "192.168.1.5",
    "192.168.0.2",
    "192.168.0.3",
    "192.168.0.4",
    "192.168.0.5",
)

# Hubitat
HUBITAT_PORT = 8080
HUBITAT_MAKER_APP_ID = "1"
HUBITAT_CANDIDATE_HOSTS = (
    "localhost",
    "192.168.1.100",
    "192.168.1.101",
    "192.168.1.102",
    "192.168.1.103",
    "192.168.0.100",
    "192.168.0.101",
    "192.168.0.102",
    "192.168.0.103",
    "10.0.0.100",
    "10.0.0.101",
    "10.0.0.102",
    "10.0.0.103",
)

# Google Nest (Smart Device Management)
NEST_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
NEST_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105
NEST_BASE_URL = "https://smartdevicemanagement.googleapis.com/v1"
NEST_SCOPE = "https://www.googleapis.com/auth/sdm.service"

# SmartThings
SMARTTHINGS_AUTH_URL = "https://auth-global.api.smartthings.com/oauth/authorize"
SMARTTHINGS_TOKEN_URL = "https://auth-global.api.smartthings.com/oauth/token"  # noqa: S105
SMARTTHINGS_BASE_URL = "https://api.smartthings.com/v1"
SMARTTHINGS_SCOPE = "r:devices:* r:locations:* r:scenes:* x:devices:*"

# Ecobee
ECOBEE_AUTH_URL = "https://api.ecobee.com/authorize"
ECOBEE_TOKEN_URL = "https://api.ecobee.com/token"  # noqa: S105
ECOBEE_BASE_URL = "https://api.ecobee.com/1"
ECOBEE_SCOPE = "smartRead smartWrite"
ECOBEE_PIN_POLL_ATTEMPTS = 60
ECOBEE_PIN_POLL_INTERVAL = 30.0  # seconds, overridden by the server's "interval"

# Ring
RING_AUTH_URL = "https://oauth.ring.com/oauth/authorize"
RING_TOKEN_URL = "https://oauth.ring.com/oauth/token"  # noqa: S105
RING_BASE_URL = "https://api.ring.com/clients_api"
RING_SCOPE = "client"

# Wyze
WYZE_AUTH_URL = "https://auth-prod.api.wyze.com/oauth2/authorize"
WYZE_TOKEN_URL = "https://auth-prod.api.wyze.com/oauth2/token"  # noqa: S105
WYZE_BASE_URL = "https://api.wyze.com/v2"
WYZE_SCOPE = "read write"
WYZE_APP_ID = "com.hualai.WyzeCam"

# iRobot
IROBOT_AUTH_URL = "https://portal.irobot.com/oauth2/authorize"
IROBOT_TOKEN_URL = "https://portal.irobot.com/oauth2/token"  # noqa: S105
IROBOT_BASE_URL = "https://api.irobot.com/v1"
IROBOT_SCOPE = "read write"

# Roborock
ROBOROCK_AUTH_URL = "https://euiot.roborock.com/oauth2/authorize"
ROBOROCK_TOKEN_URL = "https://euiot.roborock.com/oauth2/token"  # noqa: S105
ROBOROCK_BASE_URL = "https://api.roborock.com/v1"
ROBOROCK_SCOPE = "read write"

# Device status defaults
DEFAULT_VOLUME = 50
DEFAULT_TEMPERATURE = 72.0
