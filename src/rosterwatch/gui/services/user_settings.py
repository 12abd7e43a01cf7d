"""Detector user settings document and field validators.

The settings document is owned by the detector and fetched once at startup.
It is distinct from the dashboard's own view preferences: column and sort
state never round-trip through it.

Validators return an error message, or ``""`` when the value is acceptable,
so an editor can show the message inline next to the field.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Mapping

__all__ = [
    "UserSettings",
    "Validator",
    "validate_steam_id",
    "make_length_validator",
    "validate_address",
    "validate_settings",
    "FIELD_VALIDATORS",
]

Validator = Callable[[str], str]

# Individual-account Steam64 ids live in this range (universe 1, type 1).
_STEAM64_BASE = 76561197960265728
_STEAM64_MAX = _STEAM64_BASE + 0xFFFFFFFF
_STEAM2_RE = re.compile(r"^STEAM_[0-5]:[01]:(\d+)$")
_STEAM3_RE = re.compile(r"^\[U:1:(\d+)\]$")
_IPV4_RE = re.compile(
    r"^(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
    r"(\.(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)){3}$"
)


def _str_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return []


@dataclass
class UserSettings:
    steam_id: str = ""
    steam_dir: str = ""
    tf2_dir: str = ""
    api_key: str = ""
    http_listen_addr: str = "localhost:8900"
    auto_launch_game: bool = False
    auto_close_on_game_exit: bool = False
    discord_presence_enabled: bool = True
    kicker_enabled: bool = False
    chat_warnings_enabled: bool = False
    party_warnings_enabled: bool = True
    voice_bans_enabled: bool = False
    debug_log_enabled: bool = False
    rcon_static: bool = False
    gui_enabled: bool = True
    http_enabled: bool = True
    player_expired_timeout: int = 6
    player_disconnect_timeout: int = 20
    kick_tags: List[str] = field(default_factory=list)
    unique_tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "UserSettings":
        if not isinstance(data, Mapping):
            return cls()
        defaults = cls()
        values: Dict[str, Any] = {}
        for name, default in asdict(defaults).items():
            raw = data.get(name, default)
            if isinstance(default, bool):
                values[name] = raw if isinstance(raw, bool) else default
            elif isinstance(default, int):
                try:
                    values[name] = int(raw)
                except (TypeError, ValueError):
                    values[name] = default
            elif isinstance(default, list):
                values[name] = _str_list(raw)
            else:
                values[name] = "" if raw is None else str(raw)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_steam_id(value: str) -> str:
    """Accept Steam64, ``STEAM_X:Y:Z`` and ``[U:1:N]`` individual ids."""
    text = value.strip()
    if text.isdigit():
        if _STEAM64_BASE < int(text) <= _STEAM64_MAX:
            return ""
        return "Invalid SteamID"
    m = _STEAM2_RE.match(text) or _STEAM3_RE.match(text)
    if m and int(m.group(1)) <= 0xFFFFFFFF:
        return ""
    return "Invalid SteamID"


def make_length_validator(length: int) -> Validator:
    def _validate(value: str) -> str:
        return "" if len(value) == length else "Invalid value"

    return _validate


def validate_address(value: str) -> str:
    pieces = value.split(":")
    if len(pieces) != 2:
        return "Format must match host:port"
    host, port_text = pieces
    if host.lower() != "localhost" and not _IPV4_RE.match(host):
        return "Invalid address. x.x.x.x or localhost accepted"
    if not port_text.isdigit():
        return "Invalid port, must be positive integer"
    port = int(port_text)
    if port <= 0 or port > 65535:
        return "Invalid port, must be in range: 1-65535"
    return ""


FIELD_VALIDATORS: Dict[str, Validator] = {
    "steam_id": validate_steam_id,
    "api_key": make_length_validator(32),
    "http_listen_addr": validate_address,
}


def validate_settings(us: UserSettings) -> Dict[str, str]:
    """Return ``{field: error}`` for every invalid field (empty when valid).

    An empty api key is allowed; it only disables profile lookups.
    """
    errors: Dict[str, str] = {}
    for name, validator in FIELD_VALIDATORS.items():
        value = getattr(us, name)
        if name == "api_key" and value == "":
            continue
        err = validator(value)
        if err:
            errors[name] = err
    return errors
