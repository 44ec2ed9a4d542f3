"""
API v1 - Health Check Routes

Liveness and pipeline status endpoints. These report state and never fail.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends

from speech_service.api.dependencies.domain_services import (
    get_speech_model, get_transcription_pipeline
)
from speech_service.domains.speech.services.model_manager import SpeechModel
from speech_service.domains.speech.services.transcription_pipeline import TranscriptionPipeline

router = APIRouter(tags=["health"])


@router.get("/api/health")
@router.get("/health")
async def health_check(
    model: Annotated[Optional[SpeechModel], Depends(get_speech_model)]
):
    """Basic health check endpoint"""
    return {
        "status": "ok",
        "modelLoaded": model is not None and model.loaded
    }


@router.get("/api/health/pipeline")
async def pipeline_health_check(
    pipeline: Annotated[TranscriptionPipeline, Depends(get_transcription_pipeline)]
):
    """Get transcription processing metrics"""
    return {
        "success": True,
        "metrics": pipeline.get_metrics()
    }
