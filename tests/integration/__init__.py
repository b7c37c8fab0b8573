"""Integration tests for pyhomegateway.

These tests use real platform credentials from a .env file and make actual API
calls. They are marked with @pytest.mark.integration and skipped by default.

To run integration tests:
    pytest tests/integration -v -m integration

Environment variables read from .env:
    LIFX_API_KEY: LIFX personal access token
    LIFX_TEST_DEVICE_ID: LIFX light to control (optional, defaults to the first light)
    HUBITAT_HOST: Address of a Hubitat hub with the Maker API installed
    HUBITAT_TOKEN: Maker API access token
    PYHOMEGATEWAY_HUBITAT_APP_ID: Maker API app id (optional)
"""
