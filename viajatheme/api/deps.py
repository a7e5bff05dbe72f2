"""
Request dependencies and error translation for the theming API.
"""
import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request

from viajatheme.config import config
from viajatheme.errors import DecodeError, NotFoundError, ResourceError, StoreError, ThemingError
from viajatheme.services.colors import ColorSampler
from viajatheme.services.themes import ThemeResolver, ThemeStore

# Status code for each error family; the first matching base class wins
_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (DecodeError, 400),
    (ResourceError, 422),
    (StoreError, 503),
)


def get_resolver(request: Request) -> ThemeResolver:
    return request.app.state.resolver


def get_store(request: Request) -> ThemeStore:
    return request.app.state.resolver.store


def get_sampler(request: Request) -> ColorSampler:
    return request.app.state.sampler


def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None, description="Shared secret for store webhooks")
) -> None:
    """
    Check the shared secret sent by the database webhook.

    Raises:
        HTTPException: 401 when a secret is configured and the header does not match
    """
    expected = config.WEBHOOK_SECRET
    if not expected:
        return
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


def to_http_exception(error: ThemingError) -> HTTPException:
    """Map a theming error onto the HTTP status the API reports for it."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
