"""
API v1 - Speech Domain Routes

REST endpoint accepting an audio upload and returning its transcript.
"""
from typing import Annotated, Optional, Union
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
import logging

from speech_service.config import ServiceConfiguration
from speech_service.domains.speech.services.transcription_pipeline import TranscriptionPipeline
from speech_service.domains.speech.services.upload_storage import save_upload
from speech_service.shared.exceptions import NoAudioProvidedError
from speech_service.api.dependencies.domain_services import (
    get_service_configuration,
    get_transcription_pipeline
)

router = APIRouter(prefix="/api", tags=["speech"])
logger = logging.getLogger(__name__)


@router.post("/speech-to-text")
async def speech_to_text(
    pipeline: Annotated[TranscriptionPipeline, Depends(get_transcription_pipeline)],
    config: Annotated[ServiceConfiguration, Depends(get_service_configuration)],
    audio: Optional[Union[UploadFile, str]] = File(None)
):
    """Transcribe the uploaded 'audio' file"""
    # A plain text field under the same name carries no file
    if audio is None or isinstance(audio, str) or not audio.filename:
        error = NoAudioProvidedError()
        logger.warning(f"Rejected speech-to-text request: {error.message}")
        return JSONResponse(status_code=error.status_code, content={"error": error.message})

    uploaded = await save_upload(audio, config.upload_dir)
    result = await pipeline.process_upload(uploaded)

    return JSONResponse(
        status_code=200 if result.success else result.status_code,
        content=result.to_dict()
    )
