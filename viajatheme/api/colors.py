"""
Color extraction and palette suggestion routes.
"""
import asyncio
import time

from fastapi import APIRouter, Depends, File, Query, UploadFile

from viajatheme.api.deps import get_sampler, to_http_exception
from viajatheme.errors import ThemingError
from viajatheme.schemas import (
    HEX_PATTERN, ColorExtractResponse, ErrorResponse, ExtractUrlRequest, PaletteListResponse,
    PaletteModel,
)
from viajatheme.services.colors import ColorSampler, ExtractedColorPair, synthesize_palettes
from viajatheme.services.imaging import read_upload_bytes, validate_magic_bytes
from viajatheme.utils.ids import generate_request_id
from viajatheme.utils.logging import get_logger
from viajatheme.utils.metrics import get_metrics_instance

router = APIRouter(prefix="/colors", tags=["Colors"])
logger = get_logger()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Image could not be decoded"},
    422: {"model": ErrorResponse, "description": "Image unavailable or unreadable"},
}


def _palette_models(seed: str) -> list:
    return [
        PaletteModel(name=p.name, primary=p.primary, secondary=p.secondary)
        for p in synthesize_palettes(seed)
    ]


def _build_response(pair: ExtractedColorPair) -> ColorExtractResponse:
    return ColorExtractResponse(
        dominant=pair.dominant,
        secondary=pair.secondary,
        palettes=_palette_models(pair.dominant),
    )


@router.post("/extract",
             response_model=ColorExtractResponse,
             responses={**_ERROR_RESPONSES,
                        413: {"model": ErrorResponse, "description": "File too large"},
                        415: {"model": ErrorResponse, "description": "Unsupported media type"}},
             summary="Extract brand colors from an uploaded logo")
async def extract_from_upload(
    file: UploadFile = File(..., description="PNG, JPEG, WebP or GIF image"),
    sampler: ColorSampler = Depends(get_sampler),
) -> ColorExtractResponse:
    """
    Sample the dominant and secondary colors of an uploaded image and suggest
    six palettes seeded by the dominant color.
    """
    request_id = generate_request_id("extract")
    start_time = time.time()
    metrics = get_metrics_instance()
    metrics.increment_extraction_count("upload")

    image_bytes = await read_upload_bytes(file)
    try:
        validate_magic_bytes(image_bytes)
        pair = await asyncio.to_thread(sampler.extract_bytes, image_bytes)
    except ThemingError as e:
        metrics.increment_failure_count(type(e).__name__)
        logger.warning(f"Extraction failed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    logger.info("Extraction complete", extra={
        "request_id": request_id,
        "filename": file.filename,
        "ms_total": round((time.time() - start_time) * 1000, 1),
    })
    return _build_response(pair)


@router.post("/extract-url",
             response_model=ColorExtractResponse,
             responses=_ERROR_RESPONSES,
             summary="Extract brand colors from an image URL")
async def extract_from_url(
    body: ExtractUrlRequest,
    sampler: ColorSampler = Depends(get_sampler),
) -> ColorExtractResponse:
    """Same as ``/colors/extract`` for an already hosted image, e.g. an agency's current logo."""
    request_id = generate_request_id("extract")
    metrics = get_metrics_instance()
    metrics.increment_extraction_count("url")

    try:
        pair = await asyncio.to_thread(sampler.extract_url, body.url)
    except ThemingError as e:
        metrics.increment_failure_count(type(e).__name__)
        logger.warning(f"Extraction from URL failed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    logger.info("Extraction from URL complete", extra={"request_id": request_id, "url": body.url})
    return _build_response(pair)


@router.get("/palettes",
            response_model=PaletteListResponse,
            summary="Suggest palettes for a seed color")
def suggest_palettes(
    seed: str = Query(..., pattern=HEX_PATTERN, description="Seed color in format #RRGGBB"),
) -> PaletteListResponse:
    seed = seed.lower()
    return PaletteListResponse(seed=seed, palettes=_palette_models(seed))
