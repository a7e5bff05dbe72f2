"""
ViajaTheme Imaging Utilities
Handles upload validation and image retrieval ahead of color sampling.
"""
import requests
from fastapi import HTTPException, UploadFile
from loguru import logger

from viajatheme.config import config
from viajatheme.errors import DecodeError, ResourceError


def validate_file_upload(file: UploadFile) -> None:
    """
    Validate uploaded file for size and format compliance.

    Args:
        file: FastAPI UploadFile object

    Raises:
        HTTPException: 413 for oversize files, 415 for unsupported formats
    """
    # file.size might be None for some clients
    if getattr(file, "size", None) and file.size > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )

    if file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )

    if file.filename and "." in file.filename:
        ext = "." + file.filename.lower().rsplit(".", 1)[-1]
        if ext not in config.SUPPORTED_EXTENSIONS:
            raise HTTPException(
                status_code=415,
                detail=f"Unsupported file extension. Supported: {', '.join(sorted(config.SUPPORTED_EXTENSIONS))}"
            )


def validate_magic_bytes(file_bytes: bytes) -> str:
    """
    Check file magic bytes to ensure the payload is actually an image.

    Returns:
        Detected MIME type

    Raises:
        DecodeError: For payloads that match no supported format
    """
    if len(file_bytes) < 12:
        raise DecodeError("File too small or corrupt")

    if file_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if file_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if file_bytes.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if file_bytes[:4] == b"RIFF" and file_bytes[8:12] == b"WEBP":
        return "image/webp"
    raise DecodeError("Invalid image file. Magic bytes don't match supported formats.")


async def read_upload_bytes(file: UploadFile) -> bytes:
    """
    Read an uploaded image after validating its declared type and size.

    Raises:
        HTTPException: 400 when the body cannot be read, 413/415 per validation
    """
    validate_file_upload(file)
    try:
        file_bytes = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

    if len(file_bytes) > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )
    return file_bytes


def fetch_image_bytes(image_url: str, timeout: float = None) -> bytes:
    """
    Download an image referenced by URL (e.g. an agency's current logo).

    Raises:
        ResourceError: If the image cannot be fetched or exceeds the size limit
    """
    timeout = timeout or config.FETCH_TIMEOUT
    try:
        response = requests.get(image_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Image fetch failed for {image_url}: {e}")
        raise ResourceError("Failed to load image from URL", detail=str(e)) from e

    content = response.content
    if len(content) > config.MAX_FILE_MB * 1024 * 1024:
        raise ResourceError(f"Remote image larger than {config.MAX_FILE_MB}MB")
    logger.debug(f"Fetched {len(content)} bytes from {image_url}")
    return content
