"""GUI-facing roster models and payload adapters.

The detector API is loosely typed: any optional field may be absent or carry
an unexpected type. ``from_dict`` constructors therefore coerce leniently and
never raise for a single malformed field; only a payload that is not a mapping
at all is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import math
import time

__all__ = [
    "Team",
    "PlayerMatch",
    "PlayerRecord",
    "ServerInfo",
    "RosterSnapshot",
    "format_seconds",
]


class Team(IntEnum):
    SPEC = 0
    UNASSIGNED = 1
    BLU = 2
    RED = 3

    @classmethod
    def parse(cls, value: Any) -> "Team":
        try:
            return cls(int(value))
        except (TypeError, ValueError, OverflowError):
            return cls.UNASSIGNED


def _as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return default
    try:
        result = float(value)
    except (ValueError, OverflowError):
        return default
    # json.loads maps 1e400 to inf; NaN/inf would poison sorting and display
    return result if math.isfinite(result) else default


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return default


@dataclass(frozen=True)
class PlayerMatch:
    """A flagged match reported by a rule or list for a player."""

    origin: str
    attributes: Tuple[str, ...] = ()
    matcher_type: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerMatch":
        attrs = data.get("attributes") or ()
        if isinstance(attrs, str) or not isinstance(attrs, Sequence):
            attrs = ()
        return cls(
            origin=_as_str(data.get("origin")),
            attributes=tuple(_as_str(a) for a in attrs),
            matcher_type=_as_str(data.get("matcher_type")),
        )


@dataclass(frozen=True)
class PlayerRecord:
    """One row of a roster snapshot.

    ``user_id`` is only unique inside a single snapshot (reconnecting players
    receive a new one); ``steam_id`` is the identity to use for anything that
    addresses the same player across refreshes.
    """

    steam_id: Optional[int]
    user_id: Optional[int]
    name: str = ""
    team: Team = Team.UNASSIGNED
    score: int = 0
    kills: int = 0
    deaths: int = 0
    health: int = 0
    ping: int = 0
    connected: float = 0.0
    map_time: float = 0.0
    kpm: float = 0.0
    alive: bool = False
    is_connected: bool = True
    matches: Tuple[PlayerMatch, ...] = ()
    notes: str = ""
    whitelisted: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerRecord":
        if not isinstance(data, Mapping):
            raise TypeError(f"player entry must be an object, got {type(data).__name__}")
        kills = _as_int(data.get("kills")) or 0
        connected = _as_float(data.get("connected"))
        health = _as_int(data.get("health")) or 0
        if "kpm" in data:
            kpm = _as_float(data.get("kpm"))
        else:
            try:
                kpm = kills / (connected / 60.0) if connected > 0 else 0.0
            except OverflowError:
                kpm = 0.0
        raw_matches = data.get("matches") or ()
        matches: List[PlayerMatch] = []
        if isinstance(raw_matches, Sequence) and not isinstance(raw_matches, str):
            for m in raw_matches:
                if isinstance(m, Mapping):
                    matches.append(PlayerMatch.from_dict(m))
        return cls(
            steam_id=_as_int(data.get("steam_id"), None),
            user_id=_as_int(data.get("user_id"), None),
            name=_as_str(data.get("name")),
            team=Team.parse(data.get("team")),
            score=_as_int(data.get("score")) or 0,
            kills=kills,
            deaths=_as_int(data.get("deaths")) or 0,
            health=health,
            ping=_as_int(data.get("ping")) or 0,
            connected=connected,
            map_time=_as_float(data.get("map_time")),
            kpm=kpm,
            alive=_as_bool(data.get("alive"), health > 0),
            is_connected=_as_bool(data.get("is_connected"), True),
            matches=tuple(matches),
            notes=_as_str(data.get("notes")),
            whitelisted=_as_bool(data.get("whitelisted")),
        )

    @property
    def has_matches(self) -> bool:
        return len(self.matches) > 0


@dataclass(frozen=True)
class ServerInfo:
    server_name: str = ""
    current_map: str = ""
    address: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ServerInfo":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            server_name=_as_str(data.get("server_name")),
            current_map=_as_str(data.get("current_map")),
            address=_as_str(data.get("addr") or data.get("address")),
        )


@dataclass(frozen=True)
class RosterSnapshot:
    """Complete roster as of one successful fetch.

    Immutable: a refresh produces a new snapshot instead of patching this one,
    so observers never see a half-updated roster.
    """

    players: Tuple[PlayerRecord, ...] = ()
    server: ServerInfo = field(default_factory=ServerInfo)
    game_running: bool = False
    fetched_at: float = 0.0

    @classmethod
    def from_payload(cls, payload: Any, *, fetched_at: float | None = None) -> "RosterSnapshot":
        """Build a snapshot from either a bare player list or a state object.

        Raises ``TypeError`` / ``ValueError`` when the payload shape is unusable.
        """
        server: Dict[str, Any] | None = None
        game_running = False
        if isinstance(payload, Mapping):
            raw_players = payload.get("players")
            if raw_players is None:
                raw_players = []
            server = payload.get("server")  # type: ignore[assignment]
            game_running = _as_bool(payload.get("game_running"))
        else:
            raw_players = payload
        if raw_players is None:
            raw_players = []
        if isinstance(raw_players, (str, bytes)) or not isinstance(raw_players, Sequence):
            raise ValueError("roster payload does not contain a player list")
        players = tuple(PlayerRecord.from_dict(p) for p in raw_players)
        return cls(
            players=players,
            server=ServerInfo.from_dict(server),
            game_running=game_running,
            fetched_at=time.time() if fetched_at is None else fetched_at,
        )

    def team_count(self, team: Team) -> int:
        return sum(1 for p in self.players if p.team == team and p.is_connected)


def format_seconds(seconds: float) -> str:
    """Render a duration as ``h:mm:ss`` (or ``m:ss`` below one hour)."""
    if not math.isfinite(seconds):
        return ""
    total = max(0, int(round(seconds)))
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"
