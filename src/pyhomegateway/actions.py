"""Typed action model.

Actions are a closed set of generic commands. Each action knows which device
types it applies to and which typed parameters it needs. Loose parameter bags
coming from a UI are converted with :func:`parse_action_params`; adapters only
ever see the typed form.

Example:
    ```python
    from pyhomegateway.actions import Action, parse_action_params
    from pyhomegateway.models import DeviceType

    Action.SET_BRIGHTNESS.is_available_for(DeviceType.BULB)  # True
    params = parse_action_params(Action.SET_BRIGHTNESS, {"brightness": 40})
    params.level  # 40
    ```
"""

from __future__ import annotations

import colorsys
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from pyhomegateway.models import DeviceType


if TYPE_CHECKING:
    from pyhomegateway.models import DeviceStatus

_LOGGER = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


class TemperatureScale(Enum):
    """Temperature unit of a set-temperature request."""

    FAHRENHEIT = "F"
    CELSIUS = "C"


@dataclass(frozen=True)
class BrightnessParams:
    """Brightness as a percentage (0-100)."""

    level: int


@dataclass(frozen=True)
class ColorParams:
    """Color as a ``#RRGGBB`` hex string.

    Platforms describe color differently, so the conversions they need live
    here rather than in each adapter.
    """

    hex: str

    @property
    def rgb(self) -> tuple[int, int, int]:
        """Get the color as 0-255 red, green and blue components."""
        value = self.hex.lstrip("#")
        return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)

    @property
    def hsv(self) -> tuple[float, float, float]:
        """Get the color as hue degrees (0-360), saturation and value (0-1)."""
        red, green, blue = (component / 255 for component in self.rgb)
        hue, saturation, value = colorsys.rgb_to_hsv(red, green, blue)
        return hue * 360, saturation, value

    @property
    def xy(self) -> tuple[float, float]:
        """Get the CIE 1931 chromaticity coordinates (wide gamut D65)."""
        red, green, blue = (_gamma_correct(component / 255) for component in self.rgb)

        x = red * 0.664511 + green * 0.154324 + blue * 0.162028
        y = red * 0.283881 + green * 0.668433 + blue * 0.047685
        z = red * 0.000088 + green * 0.072310 + blue * 0.986039

        total = x + y + z
        if total == 0:
            return 0.0, 0.0
        return round(x / total, 4), round(y / total, 4)


def _gamma_correct(value: float) -> float:
    if value > 0.04045:
        return ((value + 0.055) / 1.055) ** 2.4
    return value / 12.92


@dataclass(frozen=True)
class VolumeParams:
    """Volume as a percentage (0-100)."""

    level: int


@dataclass(frozen=True)
class TemperatureParams:
    """Target temperature.

    Attributes:
        degrees: Temperature value in ``scale`` units.
        scale: Unit of ``degrees``.
    """

    degrees: float
    scale: TemperatureScale = TemperatureScale.FAHRENHEIT

    @property
    def celsius(self) -> float:
        """Get the temperature in degrees Celsius."""
        if self.scale is TemperatureScale.CELSIUS:
            return self.degrees
        return round((self.degrees - 32) * 5 / 9, 2)

    @property
    def fahrenheit(self) -> float:
        """Get the temperature in degrees Fahrenheit."""
        if self.scale is TemperatureScale.FAHRENHEIT:
            return self.degrees
        return round(self.degrees * 9 / 5 + 32, 2)


@dataclass(frozen=True)
class ModeParams:
    """Operating mode name, e.g. ``heat`` or ``cool``."""

    mode: str


ActionParams = BrightnessParams | ColorParams | VolumeParams | TemperatureParams | ModeParams

_ALL_TYPES = frozenset(DeviceType)
_MEDIA_TYPES = frozenset({DeviceType.TV, DeviceType.SPEAKER})


class Action(Enum):
    """Generic device commands."""

    TOGGLE = "toggle"
    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"
    SET_BRIGHTNESS = "set_brightness"
    SET_COLOR = "set_color"
    SET_VOLUME = "set_volume"
    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
    START_CLEANING = "start_cleaning"
    STOP_CLEANING = "stop_cleaning"
    SPOT_CLEAN = "spot_clean"
    RETURN_TO_BASE = "return_to_base"
    SET_TEMPERATURE = "set_temperature"
    SET_MODE = "set_mode"
    LOCK = "lock"
    UNLOCK = "unlock"
    TAKE_PHOTO = "take_photo"
    START_RECORDING = "start_recording"
    STOP_RECORDING = "stop_recording"
    PREVIOUS = "previous"
    NEXT = "next"

    @property
    def display_title(self) -> str:
        """Get the human-readable action title."""
        return _ACTION_META[self].title

    @property
    def icon(self) -> str:
        """Get the icon name for the action."""
        return _ACTION_META[self].icon

    @property
    def param_type(self) -> type[ActionParams] | None:
        """Get the parameter type the action requires, None if it takes none."""
        return _ACTION_META[self].param_type

    def is_available_for(self, device_type: DeviceType) -> bool:
        """Check whether the action applies to a device type.

        Args:
            device_type: Kind of device.

        Returns:
            True if the action is meaningful for the device type.
        """
        return device_type in _ACTION_META[self].device_types

    @classmethod
    def available_for(cls, device_type: DeviceType) -> list[Action]:
        """List every action available for a device type."""
        return [action for action in cls if action.is_available_for(device_type)]


@dataclass(frozen=True)
class _ActionMeta:
    title: str
    icon: str
    device_types: frozenset[DeviceType]
    param_type: type[ActionParams] | None = None


_ACTION_META: dict[Action, _ActionMeta] = {
    Action.TOGGLE: _ActionMeta("Toggle", "power", _ALL_TYPES),
    Action.TURN_ON: _ActionMeta("Turn On", "power.circle.fill", _ALL_TYPES),
    Action.TURN_OFF: _ActionMeta("Turn Off", "power.circle", _ALL_TYPES),
    Action.SET_BRIGHTNESS: _ActionMeta(
        "Set Brightness", "sun.max", frozenset({DeviceType.BULB}), BrightnessParams
    ),
    Action.SET_COLOR: _ActionMeta("Set Color", "paintpalette", frozenset({DeviceType.BULB}), ColorParams),
    Action.SET_VOLUME: _ActionMeta("Set Volume", "speaker.wave.2", _MEDIA_TYPES, VolumeParams),
    Action.PLAY: _ActionMeta("Play", "play.fill", _MEDIA_TYPES),
    Action.PAUSE: _ActionMeta("Pause", "pause.fill", _MEDIA_TYPES),
    Action.STOP: _ActionMeta("Stop", "stop.fill", _MEDIA_TYPES),
    Action.START_CLEANING: _ActionMeta("Start Cleaning", "sparkles", frozenset({DeviceType.VACUUM})),
    Action.STOP_CLEANING: _ActionMeta("Stop Cleaning", "stop.circle", frozenset({DeviceType.VACUUM})),
    Action.SPOT_CLEAN: _ActionMeta("Spot Clean", "scope", frozenset({DeviceType.VACUUM})),
    Action.RETURN_TO_BASE: _ActionMeta("Return to Base", "house", frozenset({DeviceType.VACUUM})),
    Action.SET_TEMPERATURE: _ActionMeta(
        "Set Temperature", "thermometer", frozenset({DeviceType.THERMOSTAT}), TemperatureParams
    ),
    Action.SET_MODE: _ActionMeta(
        "Set Mode", "slider.horizontal.3", frozenset({DeviceType.THERMOSTAT}), ModeParams
    ),
    Action.LOCK: _ActionMeta("Lock", "lock.fill", frozenset({DeviceType.LOCK})),
    Action.UNLOCK: _ActionMeta("Unlock", "lock.open.fill", frozenset({DeviceType.LOCK})),
    Action.TAKE_PHOTO: _ActionMeta("Take Photo", "camera", frozenset({DeviceType.CAMERA})),
    Action.START_RECORDING: _ActionMeta("Start Recording", "record.circle", frozenset({DeviceType.CAMERA})),
    Action.STOP_RECORDING: _ActionMeta("Stop Recording", "stop.circle.fill", frozenset({DeviceType.CAMERA})),
    Action.PREVIOUS: _ActionMeta("Previous", "backward.fill", _MEDIA_TYPES),
    Action.NEXT: _ActionMeta("Next", "forward.fill", _MEDIA_TYPES),
}


def _percentage(bag: Mapping[str, Any], *keys: str) -> int | None:
    for key in keys:
        value = bag.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        if not 0 <= value <= 100:  # noqa: PLR2004
            return None
        return round(value)
    return None


def _parse_bag(action: Action, bag: Mapping[str, Any]) -> ActionParams | None:
    if action is Action.SET_BRIGHTNESS:
        level = _percentage(bag, "brightness", "level")
        return BrightnessParams(level) if level is not None else None

    if action is Action.SET_VOLUME:
        level = _percentage(bag, "volume", "level")
        return VolumeParams(level) if level is not None else None

    if action is Action.SET_COLOR:
        color = bag.get("color", bag.get("hex"))
        if not isinstance(color, str):
            return None
        match = _HEX_COLOR.match(color.strip())
        return ColorParams(f"#{match.group(1).upper()}") if match else None

    if action is Action.SET_TEMPERATURE:
        degrees = bag.get("temperature", bag.get("degrees"))
        if isinstance(degrees, bool) or not isinstance(degrees, int | float):
            return None
        try:
            scale = TemperatureScale(str(bag.get("scale", "F")).upper())
        except ValueError:
            return None
        return TemperatureParams(float(degrees), scale)

    if action is Action.SET_MODE:
        mode = bag.get("mode")
        return ModeParams(mode) if isinstance(mode, str) and mode else None

    return None


def parse_action_params(
    action: Action,
    params: Mapping[str, Any] | ActionParams | None,
) -> ActionParams | None:
    """Convert a loose parameter bag into the action's typed parameters.

    Args:
        action: Action the parameters are for.
        params: A mapping from a UI, an already typed params object, or None.

    Returns:
        Typed parameters, or None when the action takes none or when the
        parameters are missing or invalid. Invalid input is logged as a warning.
    """
    expected = action.param_type
    if expected is None:
        return None

    if isinstance(params, expected):
        return params

    parsed = _parse_bag(action, params) if isinstance(params, Mapping) else None
    if parsed is None:
        _LOGGER.warning("Missing or invalid parameters for %s: %r", action.value, params)
    return parsed


def status_changes(
    action: Action,
    params: ActionParams | None,
    current: DeviceStatus,
) -> dict[str, Any]:
    """Compute the optimistic status change a successful action implies.

    Only fields the action affects are returned.

    Args:
        action: Action that succeeded.
        params: Typed parameters the action was executed with.
        current: Cached status before the action.

    Returns:
        Mapping of DeviceStatus field names to new values.
    """
    if action is Action.TURN_ON:
        return {"is_on": True}
    if action is Action.TURN_OFF:
        return {"is_on": False}
    if action is Action.TOGGLE:
        return {"is_on": not current.is_on}
    if action is Action.SET_BRIGHTNESS and isinstance(params, BrightnessParams):
        return {"brightness": params.level}
    if action is Action.SET_VOLUME and isinstance(params, VolumeParams):
        return {"volume": params.level}
    if action is Action.SET_TEMPERATURE and isinstance(params, TemperatureParams):
        return {"temperature": params.fahrenheit}
    if action is Action.SET_MODE and isinstance(params, ModeParams):
        return {"mode": params.mode}
    if action is Action.PLAY:
        return {"is_on": True}
    if action in (Action.START_CLEANING, Action.SPOT_CLEAN):
        return {"is_cleaning": True, "is_on": True}
    if action in (Action.STOP_CLEANING, Action.RETURN_TO_BASE):
        return {"is_cleaning": False}
    if action is Action.LOCK:
        return {"is_locked": True}
    if action is Action.UNLOCK:
        return {"is_locked": False}
    return {}
