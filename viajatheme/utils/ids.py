"""
ViajaTheme ID Utilities
Generate request ids for tracing and identifiers for new theme records.
"""
import uuid
from datetime import datetime


def generate_request_id(prefix: str = "req") -> str:
    """
    Generate a unique request ID for tracking.

    Returns:
        Request id of the form ``{prefix}-{YYYYmmddHHMMSS}-{8 hex}``
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    short_uuid = str(uuid.uuid4())[:8]
    return f"{prefix}-{timestamp}-{short_uuid}"


def new_theme_id() -> str:
    """Identifier for a newly inserted theme record."""
    return str(uuid.uuid4())
