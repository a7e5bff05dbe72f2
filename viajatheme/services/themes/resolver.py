"""
Theme resolution.

Three slots compete for the storefront's look, in strict precedence:
an administrator's live preview, then a tenant (agency micro-site) override,
then the globally active theme from the store. Whenever any slot changes the
effective theme's CSS ramp is recomputed and written to the style sink.

Store-backed operations are asynchronous. Refreshes and tenant loads are
sequence-stamped so a slow, older call can never overwrite newer state, and
activation is only reflected locally once the store has confirmed it.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Optional, Union

from loguru import logger

from viajatheme.errors import StoreError, ThemingError
from viajatheme.services.themes.defaults import DEFAULT_THEME
from viajatheme.services.themes.feed import Subscription
from viajatheme.services.themes.models import AgencyTheme, ThemeColors, ThemePalette
from viajatheme.services.themes.ramp import DerivedCssRamp, derive_ramp
from viajatheme.services.themes.sink import InMemoryStyleSink, StyleSink
from viajatheme.services.themes.store import ThemeStore
from viajatheme.utils.metrics import get_metrics_instance

TENANT_OVERRIDE_ID = "tenant-override"

ColorsInput = Union[ThemeColors, AgencyTheme, Mapping[str, str]]


class ThemeSource(str, Enum):
    """Which slot supplied the effective theme."""

    PREVIEW = "preview"
    TENANT_OVERRIDE = "tenant_override"
    ACTIVE_GLOBAL = "active_global"


@dataclass(frozen=True)
class ThemeResolutionState:
    """Immutable snapshot of the resolver's slots."""

    preview: Optional[ThemePalette]
    tenant_override: Optional[ThemePalette]
    active_global: ThemePalette
    pending_activation: Optional[str] = None

    @property
    def effective_source(self) -> ThemeSource:
        if self.preview is not None:
            return ThemeSource.PREVIEW
        if self.tenant_override is not None:
            return ThemeSource.TENANT_OVERRIDE
        return ThemeSource.ACTIVE_GLOBAL

    @property
    def effective(self) -> ThemePalette:
        if self.preview is not None:
            return self.preview
        if self.tenant_override is not None:
            return self.tenant_override
        return self.active_global


def _coerce_colors(colors: ColorsInput) -> ThemeColors:
    if isinstance(colors, ThemeColors):
        return colors
    if isinstance(colors, AgencyTheme):
        return colors.colors
    return ThemeColors.from_dict(colors)


class ThemeResolver:
    """Holds the precedence stack and keeps the style sink in sync with it."""

    def __init__(self,
                 store: ThemeStore,
                 sink: Optional[StyleSink] = None,
                 default_theme: ThemePalette = DEFAULT_THEME):
        self._store = store
        self._sink = sink if sink is not None else InMemoryStyleSink()
        self._default_theme = default_theme
        self._state = ThemeResolutionState(preview=None, tenant_override=None,
                                           active_global=default_theme)
        self._ramp: Optional[DerivedCssRamp] = None

        self._refresh_issued = 0
        self._refresh_applied = 0
        self._tenant_issued = 0

        self._subscription: Optional[Subscription] = None
        self._listener: Optional[asyncio.Task] = None

        self._recompute()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def store(self) -> ThemeStore:
        return self._store

    @property
    def sink(self) -> StyleSink:
        return self._sink

    @property
    def state(self) -> ThemeResolutionState:
        return self._state

    @property
    def effective(self) -> ThemePalette:
        return self._state.effective

    @property
    def effective_source(self) -> ThemeSource:
        return self._state.effective_source

    @property
    def ramp(self) -> DerivedCssRamp:
        return self._ramp

    @property
    def is_running(self) -> bool:
        return self._listener is not None and not self._listener.done()

    def snapshot(self) -> ThemeResolutionState:
        return self._state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to store changes and load the active theme."""
        if self._listener is not None:
            return
        self._subscription = self._store.feed.open()
        self._listener = asyncio.create_task(self._listen(self._subscription))
        await self.refresh()
        logger.info(f"Theme resolver started; active theme {self._state.active_global.id}")

    async def stop(self) -> None:
        """Cancel the listener and release the subscription."""
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await listener
        if self._subscription is not None:
            self._store.feed.close(self._subscription)
            self._subscription = None
        logger.info("Theme resolver stopped")

    @contextlib.asynccontextmanager
    async def running(self) -> AsyncIterator["ThemeResolver"]:
        await self.start()
        try:
            yield self
        finally:
            await self.stop()

    async def _listen(self, subscription: Subscription) -> None:
        while True:
            event = await subscription.next_event()
            logger.debug(f"Theme store changed ({event.reason}); refreshing")
            try:
                await self.refresh()
            except Exception:
                logger.exception("Theme refresh after store change failed")

    # ------------------------------------------------------------------
    # Slot mutation
    # ------------------------------------------------------------------

    def _update(self, **changes) -> None:
        previous = self._state.effective
        self._state = replace(self._state, **changes)
        if self._state.effective != previous or self._ramp is None:
            self._recompute()

    def _recompute(self) -> None:
        effective = self._state.effective
        ramp = derive_ramp(effective)
        self._sink.apply(ramp)
        self._ramp = ramp
        get_metrics_instance().increment("resolver_recompute_total")
        logger.debug(f"Effective theme {effective.id} from {self._state.effective_source.value}")

    async def refresh(self) -> ThemePalette:
        """
        Re-read the whole collection and update the active-global slot.

        An unreachable store falls back to the built-in default theme.
        """
        self._refresh_issued += 1
        ticket = self._refresh_issued
        get_metrics_instance().increment("resolver_refresh_total")

        try:
            themes = await self._store.list_themes()
        except StoreError as e:
            get_metrics_instance().increment_failure_count("store_read")
            logger.warning(f"Theme store unreachable, using built-in default: {e}")
            themes = []

        if ticket <= self._refresh_applied:
            logger.debug(f"Discarding stale refresh #{ticket} (applied #{self._refresh_applied})")
            return self._state.active_global
        self._refresh_applied = ticket

        active = [theme for theme in themes if theme.is_active]
        if len(active) > 1:
            logger.error(f"Store reports {len(active)} active themes; using {active[0].id}")
        if active:
            active_global = active[0]
        else:
            if themes:
                logger.warning("No active theme in store; using built-in default")
            active_global = self._default_theme

        self._update(active_global=active_global)
        return active_global

    async def set_active_global(self, theme_id: str) -> ThemePalette:
        """
        Make ``theme_id`` the globally active theme.

        The local slot only changes after the store confirms the atomic
        activation; until then the request is visible as ``pending_activation``.

        Raises:
            NotFoundError: If the theme does not exist
            StoreError: If the store write fails
        """
        self._state = replace(self._state, pending_activation=theme_id)
        try:
            await self._store.activate_theme(theme_id)
        except ThemingError as e:
            get_metrics_instance().increment_failure_count("store_write")
            logger.error(f"Activation of {theme_id} rejected: {e}")
            raise
        finally:
            if self._state.pending_activation == theme_id:
                self._state = replace(self._state, pending_activation=None)

        return await self.refresh()

    async def add_theme(self, name: str, colors: ColorsInput) -> Optional[str]:
        """Insert an inactive theme; returns its id, or None if the store failed."""
        try:
            theme = await self._store.insert_theme(name, _coerce_colors(colors))
        except StoreError as e:
            get_metrics_instance().increment_failure_count("store_write")
            logger.error(f"Could not add theme {name!r}: {e}")
            return None
        return theme.id

    async def delete_theme(self, theme_id: str) -> ThemePalette:
        """
        Remove a theme. Deleting the active theme reverts to the built-in default.

        Raises:
            NotFoundError: If the theme does not exist
            StoreError: If the store write fails
        """
        try:
            removed = await self._store.delete_theme(theme_id)
        except ThemingError:
            get_metrics_instance().increment_failure_count("store_write")
            raise
        if removed.is_active:
            logger.info(f"Active theme {theme_id} deleted; falling back to default")
        await self.refresh()
        return removed

    def enter_preview(self, theme: ThemePalette) -> None:
        self._update(preview=theme)

    def exit_preview(self) -> None:
        self._update(preview=None)

    def set_tenant_override(self, colors: ColorsInput, name: str = "Tenant override") -> ThemePalette:
        """Apply a tenant's colors ahead of the global theme."""
        self._tenant_issued += 1
        theme = ThemePalette(id=TENANT_OVERRIDE_ID, name=name,
                             colors=_coerce_colors(colors), created_at=None)
        self._update(tenant_override=theme)
        return theme

    def clear_tenant_override(self) -> None:
        self._tenant_issued += 1
        self._update(tenant_override=None)

    async def load_tenant_override(self, agency_id: str) -> Optional[ThemePalette]:
        """
        Fetch an agency's saved colors and make them the tenant override.

        Only the most recently issued tenant operation takes effect; an agency
        without saved colors clears the slot.

        Raises:
            StoreError: If the store read fails
        """
        self._tenant_issued += 1
        ticket = self._tenant_issued

        agency_theme = await self._store.get_agency_theme(agency_id)

        if ticket != self._tenant_issued:
            logger.debug(f"Discarding stale tenant load for {agency_id}")
            return self._state.tenant_override

        if agency_theme is None:
            self._update(tenant_override=None)
            return None
        theme = replace(agency_theme.as_palette(), id=TENANT_OVERRIDE_ID)
        self._update(tenant_override=theme)
        return theme

    async def save_tenant_theme(self, agency_id: str, colors: ColorsInput) -> AgencyTheme:
        """
        Persist an agency's colors, then apply them as the tenant override.

        The colors are applied only if no other tenant operation was issued
        while the write was in flight; the write itself always persists.

        Raises:
            StoreError: If the store write fails
        """
        self._tenant_issued += 1
        ticket = self._tenant_issued

        saved = await self._store.save_agency_theme(agency_id, _coerce_colors(colors))

        if ticket != self._tenant_issued:
            logger.debug(f"Saved theme for {agency_id}; not applied, a later tenant operation superseded it")
            return saved
        theme = ThemePalette(id=TENANT_OVERRIDE_ID, name=f"Agency {agency_id}",
                             colors=saved.colors, created_at=None)
        self._update(tenant_override=theme)
        return saved
