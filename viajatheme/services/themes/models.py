"""Theme record models shared by the store, the resolver and the API."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from viajatheme.services.colors.color_math import is_hex_color, normalize_hex

COLOR_KEYS = ("primary", "secondary", "background", "text")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class ThemeColors:
    """The four colors every theme carries."""

    primary: str
    secondary: str
    background: str
    text: str

    def __post_init__(self) -> None:
        for key in COLOR_KEYS:
            value = getattr(self, key)
            if not is_hex_color(value):
                raise ValueError(f"Theme color {key!r} must be #RRGGBB, got {value!r}")
            object.__setattr__(self, key, normalize_hex(value))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ThemeColors":
        missing = [key for key in COLOR_KEYS if key not in data]
        if missing:
            raise ValueError(f"Missing theme colors: {', '.join(missing)}")
        return cls(**{key: data[key] for key in COLOR_KEYS})

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, key) for key in COLOR_KEYS}


@dataclass(frozen=True)
class ThemePalette:
    """A stored theme record."""

    id: str
    name: str
    colors: ThemeColors
    is_active: bool = False
    is_default: bool = False
    created_at: Optional[datetime] = field(default_factory=_utcnow)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ThemePalette":
        """Build from the persisted row shape."""
        return cls(
            id=str(record["id"]),
            name=record["name"],
            colors=ThemeColors.from_dict(record["colors"]),
            is_active=bool(record.get("is_active", False)),
            is_default=bool(record.get("is_default", False)),
            created_at=_parse_timestamp(record.get("created_at")),
        )

    def to_record(self) -> dict[str, Any]:
        """Persisted row shape."""
        return {
            "id": self.id,
            "name": self.name,
            "colors": self.colors.to_dict(),
            "is_active": self.is_active,
            "is_default": self.is_default,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def with_active(self, is_active: bool) -> "ThemePalette":
        return replace(self, is_active=is_active)


@dataclass(frozen=True)
class AgencyTheme:
    """Colors a tenant (agency) saved for its own micro-site."""

    agency_id: str
    colors: ThemeColors
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AgencyTheme":
        return cls(
            agency_id=str(record["agency_id"]),
            colors=ThemeColors.from_dict(record["colors"]),
            updated_at=_parse_timestamp(record.get("updated_at")),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "agency_id": self.agency_id,
            "colors": self.colors.to_dict(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def as_palette(self) -> ThemePalette:
        """Wrap as a transient theme for the tenant override slot."""
        return ThemePalette(
            id=f"agency:{self.agency_id}",
            name=f"Agency {self.agency_id}",
            colors=self.colors,
            created_at=self.updated_at,
        )
