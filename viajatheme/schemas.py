"""
ViajaTheme API Schemas
Pydantic models for color extraction and theme request/response validation.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

HEX_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class ThemeColorsModel(BaseModel):
    """The four colors of a theme."""
    primary: str = Field(..., pattern=HEX_PATTERN, description="Primary brand color")
    secondary: str = Field(..., pattern=HEX_PATTERN, description="Accent color")
    background: str = Field(..., pattern=HEX_PATTERN, description="Page background")
    text: str = Field(..., pattern=HEX_PATTERN, description="Body text color")

    @field_validator("primary", "secondary", "background", "text")
    @classmethod
    def lowercase_hex(cls, v):
        return v.lower()


class PaletteModel(BaseModel):
    """A named primary/secondary suggestion."""
    name: str
    primary: str = Field(..., pattern=HEX_PATTERN)
    secondary: str = Field(..., pattern=HEX_PATTERN)


class ColorExtractResponse(BaseModel):
    """Colors sampled from an image plus the palettes derived from the dominant one."""
    dominant: str = Field(..., pattern=HEX_PATTERN, description="Most frequent quantized color")
    secondary: str = Field(..., pattern=HEX_PATTERN, description="Most distant sampled color")
    palettes: List[PaletteModel] = Field(..., description="Six palettes seeded by the dominant color")


class ExtractUrlRequest(BaseModel):
    """Request body for extracting colors from a remote image."""
    url: str = Field(..., min_length=1, description="http(s) URL of the image")

    @field_validator("url")
    @classmethod
    def validate_scheme(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


class PaletteListResponse(BaseModel):
    seed: str
    palettes: List[PaletteModel]


class ThemeModel(BaseModel):
    """A stored theme."""
    id: str
    name: str
    colors: ThemeColorsModel
    is_active: bool
    is_default: bool
    created_at: Optional[datetime] = None


class ThemeListResponse(BaseModel):
    themes: List[ThemeModel]
    active_id: Optional[str] = Field(None, description="Id of the active theme, if any")


class ThemeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    colors: ThemeColorsModel

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class ThemeCreateResponse(BaseModel):
    id: str


class PreviewRequest(BaseModel):
    """Theme shown temporarily while an administrator edits colors."""
    name: str = Field("Preview", max_length=100)
    colors: ThemeColorsModel


class TenantOverrideRequest(BaseModel):
    colors: ThemeColorsModel


class EffectiveThemeResponse(BaseModel):
    """What the storefront currently renders, and why."""
    theme: ThemeModel
    source: str = Field(..., description="preview, tenant_override or active_global")
    active_global_id: str
    pending_activation: Optional[str] = None
    has_preview: bool
    has_tenant_override: bool
    variables: Dict[str, str] = Field(..., description="CSS custom properties, values as 'r g b'")


class AgencyThemeModel(BaseModel):
    agency_id: str
    colors: ThemeColorsModel
    updated_at: Optional[datetime] = None


class AgencyThemeRequest(BaseModel):
    colors: ThemeColorsModel


class StoreChangedResponse(BaseModel):
    delivered: int = Field(..., description="Subscribers notified")


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("viajatheme", description="Service name")
    store_backend: str
    resolver_running: bool


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")
