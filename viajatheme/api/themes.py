"""
Theme collection, resolution and tenant routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from viajatheme.api.deps import get_resolver, get_store, to_http_exception, verify_webhook_secret
from viajatheme.errors import ThemingError
from viajatheme.schemas import (
    AgencyThemeModel, AgencyThemeRequest, EffectiveThemeResponse, ErrorResponse,
    PreviewRequest, StoreChangedResponse, TenantOverrideRequest, ThemeColorsModel,
    ThemeCreateRequest, ThemeCreateResponse, ThemeListResponse, ThemeModel,
)
from viajatheme.services.themes import (
    AgencyTheme, ThemeColors, ThemePalette, ThemeResolver, ThemeStore,
)
from viajatheme.utils.ids import new_theme_id
from viajatheme.utils.logging import get_logger
from viajatheme.utils.metrics import get_metrics_instance

router = APIRouter(prefix="/themes", tags=["Themes"])
agency_router = APIRouter(prefix="/agencies", tags=["Agency themes"])
logger = get_logger()

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Theme not found"}}
_UNAVAILABLE = {503: {"model": ErrorResponse, "description": "Theme store unavailable"}}


def _colors_model(colors: ThemeColors) -> ThemeColorsModel:
    return ThemeColorsModel(**colors.to_dict())


def _colors(model: ThemeColorsModel) -> ThemeColors:
    return ThemeColors.from_dict(model.model_dump())


def _theme_model(theme: ThemePalette) -> ThemeModel:
    return ThemeModel(
        id=theme.id,
        name=theme.name,
        colors=_colors_model(theme.colors),
        is_active=theme.is_active,
        is_default=theme.is_default,
        created_at=theme.created_at,
    )


def _agency_model(agency_theme: AgencyTheme) -> AgencyThemeModel:
    return AgencyThemeModel(
        agency_id=agency_theme.agency_id,
        colors=_colors_model(agency_theme.colors),
        updated_at=agency_theme.updated_at,
    )


def _effective_response(resolver: ThemeResolver) -> EffectiveThemeResponse:
    state = resolver.snapshot()
    return EffectiveThemeResponse(
        theme=_theme_model(state.effective),
        source=state.effective_source.value,
        active_global_id=state.active_global.id,
        pending_activation=state.pending_activation,
        has_preview=state.preview is not None,
        has_tenant_override=state.tenant_override is not None,
        variables=dict(resolver.ramp),
    )


# -----------------------------------------------------------------------------
# Theme collection
# -----------------------------------------------------------------------------

@router.get("", response_model=ThemeListResponse, responses=_UNAVAILABLE)
async def list_themes(store: ThemeStore = Depends(get_store)) -> ThemeListResponse:
    try:
        themes = await store.list_themes()
    except ThemingError as e:
        raise to_http_exception(e)
    active = next((theme.id for theme in themes if theme.is_active), None)
    return ThemeListResponse(themes=[_theme_model(t) for t in themes], active_id=active)


@router.post("", status_code=201, response_model=ThemeCreateResponse, responses=_UNAVAILABLE)
async def create_theme(
    body: ThemeCreateRequest,
    resolver: ThemeResolver = Depends(get_resolver),
) -> ThemeCreateResponse:
    """Add an inactive theme to the collection."""
    theme_id = await resolver.add_theme(body.name, _colors(body.colors))
    if theme_id is None:
        raise HTTPException(status_code=503, detail="Theme could not be saved")
    logger.info("Theme created", extra={"theme_id": theme_id, "theme_name": body.name})
    return ThemeCreateResponse(id=theme_id)


@router.post("/{theme_id}/activate",
             response_model=EffectiveThemeResponse,
             responses={**_NOT_FOUND, **_UNAVAILABLE})
async def activate_theme(
    theme_id: str,
    resolver: ThemeResolver = Depends(get_resolver),
) -> EffectiveThemeResponse:
    """Make a theme the single globally active one."""
    try:
        await resolver.set_active_global(theme_id)
    except ThemingError as e:
        raise to_http_exception(e)
    get_metrics_instance().increment("theme_activations_total")
    logger.info("Theme activated", extra={"theme_id": theme_id})
    return _effective_response(resolver)


# -----------------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------------

@router.get("/effective", response_model=EffectiveThemeResponse)
async def get_effective_theme(resolver: ThemeResolver = Depends(get_resolver)) -> EffectiveThemeResponse:
    return _effective_response(resolver)


@router.get("/effective.css", response_class=PlainTextResponse)
async def get_effective_css(
    selector: str = Query(":root", max_length=100, description="CSS selector for the variable block"),
    resolver: ThemeResolver = Depends(get_resolver),
) -> PlainTextResponse:
    """The effective theme's ramp as a stylesheet."""
    return PlainTextResponse(resolver.ramp.to_css(selector), media_type="text/css")


@router.put("/preview", response_model=EffectiveThemeResponse)
async def enter_preview(
    body: PreviewRequest,
    resolver: ThemeResolver = Depends(get_resolver),
) -> EffectiveThemeResponse:
    """Show unsaved colors ahead of every other slot until the preview is cleared."""
    theme = ThemePalette(id=f"preview-{new_theme_id()}", name=body.name,
                         colors=_colors(body.colors), created_at=None)
    resolver.enter_preview(theme)
    return _effective_response(resolver)


@router.delete("/preview", response_model=EffectiveThemeResponse)
async def exit_preview(resolver: ThemeResolver = Depends(get_resolver)) -> EffectiveThemeResponse:
    resolver.exit_preview()
    return _effective_response(resolver)


@router.put("/tenant-override", response_model=EffectiveThemeResponse)
async def set_tenant_override(
    body: TenantOverrideRequest,
    resolver: ThemeResolver = Depends(get_resolver),
) -> EffectiveThemeResponse:
    resolver.set_tenant_override(_colors(body.colors))
    return _effective_response(resolver)


@router.delete("/tenant-override", response_model=EffectiveThemeResponse)
async def clear_tenant_override(resolver: ThemeResolver = Depends(get_resolver)) -> EffectiveThemeResponse:
    resolver.clear_tenant_override()
    return _effective_response(resolver)


@router.post("/changed",
             response_model=StoreChangedResponse,
             dependencies=[Depends(verify_webhook_secret)],
             summary="Theme store change webhook")
async def store_changed(store: ThemeStore = Depends(get_store)) -> StoreChangedResponse:
    """
    Entry point for database webhooks: tells every listener the collection
    changed so resolvers re-read it.
    """
    delivered = store.notify_changed("webhook")
    get_metrics_instance().increment("store_webhooks_total")
    logger.debug("Store change webhook received", extra={"delivered": delivered})
    return StoreChangedResponse(delivered=delivered)


# Declared after the fixed /preview and /tenant-override paths so it does not shadow them
@router.delete("/{theme_id}", response_model=ThemeModel, responses={**_NOT_FOUND, **_UNAVAILABLE})
async def delete_theme(
    theme_id: str,
    resolver: ThemeResolver = Depends(get_resolver),
) -> ThemeModel:
    try:
        removed = await resolver.delete_theme(theme_id)
    except ThemingError as e:
        raise to_http_exception(e)
    logger.info("Theme deleted", extra={"theme_id": theme_id})
    return _theme_model(removed)


# -----------------------------------------------------------------------------
# Agency (tenant) themes
# -----------------------------------------------------------------------------

@agency_router.get("/{agency_id}/theme",
                   response_model=AgencyThemeModel,
                   responses={404: {"model": ErrorResponse, "description": "No saved theme"},
                              **_UNAVAILABLE})
async def get_agency_theme(
    agency_id: str,
    store: ThemeStore = Depends(get_store),
) -> AgencyThemeModel:
    try:
        agency_theme = await store.get_agency_theme(agency_id)
    except ThemingError as e:
        raise to_http_exception(e)
    if agency_theme is None:
        raise HTTPException(status_code=404, detail=f"No theme saved for agency {agency_id}")
    return _agency_model(agency_theme)


@agency_router.put("/{agency_id}/theme", response_model=AgencyThemeModel, responses=_UNAVAILABLE)
async def save_agency_theme(
    agency_id: str,
    body: AgencyThemeRequest,
    apply: bool = Query(False, description="Also make these colors the tenant override"),
    resolver: ThemeResolver = Depends(get_resolver),
) -> AgencyThemeModel:
    """Persist an agency's micro-site colors."""
    try:
        if apply:
            saved = await resolver.save_tenant_theme(agency_id, _colors(body.colors))
        else:
            saved = await resolver.store.save_agency_theme(agency_id, _colors(body.colors))
    except ThemingError as e:
        raise to_http_exception(e)
    logger.info("Agency theme saved", extra={"agency_id": agency_id, "applied": apply})
    return _agency_model(saved)


@agency_router.post("/{agency_id}/theme/apply",
                    response_model=EffectiveThemeResponse,
                    responses=_UNAVAILABLE)
async def apply_agency_theme(
    agency_id: str,
    resolver: ThemeResolver = Depends(get_resolver),
) -> EffectiveThemeResponse:
    """Load the agency's saved colors as the tenant override; clears it when none are saved."""
    try:
        await resolver.load_tenant_override(agency_id)
    except ThemingError as e:
        raise to_http_exception(e)
    return _effective_response(resolver)
