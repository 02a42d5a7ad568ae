import time
from functools import partial
from typing import Optional
from fastapi import APIRouter, Depends, Query
from loguru import logger

from khata.models.schemas import (
    KhataExtractionRequest,
    KhataExtractionResponse,
    MatchRequest,
    MatchResponse,
    HealthResponse,
    ErrorResponse,
)
from khata.services.extraction import llm_service
from khata.services.matcher import get_summary_stats, match_extracted_students
from khata.services.reconciliation import KhataReconciler
from khata.services.validators import validate_extracted_data
from khata.utils.image_payload import image_decoder
from khata.utils.exceptions import ValidationError
from khata.api.security import get_api_key
from khata.core.config import settings, ReconciliationConfig


router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check API and Gemini service health status"
)
async def health_check():
    try:
        llm_healthy, provider = await llm_service.health_check()
        return HealthResponse(
            status="healthy" if llm_healthy else "degraded",
            version=settings.app_version,
            llm_provider=provider,
            llm_status="connected" if llm_healthy else "disconnected"
        )
    except Exception as e:
        logger.error(f"Health check error: {e}")
        return HealthResponse(
            status="unhealthy",
            version=settings.app_version,
            llm_provider="gemini",
            llm_status=f"error: {str(e)}"
        )


@router.post(
    "/khata/extract",
    response_model=KhataExtractionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No images, too many images, or undecodable image"},
        401: {"model": ErrorResponse, "description": "Missing or invalid API key"},
        500: {"model": ErrorResponse, "description": "Internal server error"}
    },
    summary="Extract and Reconcile Register Marks",
    dependencies=[Depends(get_api_key)],
)
async def extract_khata_marks(
    body: KhataExtractionRequest,
    apikey: Optional[str] = Query(default=None, description="Your Gemini API key. If not provided, server default key will be used.")
):
    start_time = time.time()

    images = image_decoder.decode_all(body.images)
    roster_size = len(body.roster) if body.roster is not None else "no"
    logger.info(f"Reconciling {len(images)} register image(s) against {roster_size} roster entries")

    reconciler = KhataReconciler(
        ocr_call=partial(llm_service.extract_khata_page, user_api_key=apikey),
        config=ReconciliationConfig.from_settings(settings),
    )
    report = await reconciler.reconcile(images, body.roster)

    processing_time = (time.time() - start_time) * 1000
    return report.to_response(processing_time_ms=round(processing_time, 2))


@router.post(
    "/khata/match",
    response_model=MatchResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid API key"},
        422: {"model": ErrorResponse, "description": "No marks supplied"},
    },
    summary="Re-match Reviewed Marks",
    description="Validate reviewer-edited marks and match them against the roster again",
    dependencies=[Depends(get_api_key)],
)
async def rematch_khata_marks(body: MatchRequest):
    if not body.marks:
        raise ValidationError("No marks to match")

    matched = match_extracted_students(
        body.marks,
        body.roster,
        ReconciliationConfig.from_settings(settings),
    )
    return MatchResponse(
        marks=matched,
        summary=get_summary_stats(matched),
        validation=validate_extracted_data(matched),
    )


@router.get(
    "/schema",
    summary="Get Response Schema",
    description="Get the JSON schema for the extraction response"
)
async def get_schema():
    """Return the JSON schema for the khata extraction response"""
    return KhataExtractionResponse.model_json_schema()
