"""
API Layer - Domain Service Dependencies

FastAPI dependency injection for the speech model, the transcription
pipeline and the service configuration. Instances are created once by the
app factory and stored on app.state.
"""
from typing import Optional

from fastapi import Request

from speech_service.config import ServiceConfiguration
from speech_service.domains.speech.services.model_manager import SpeechModel
from speech_service.domains.speech.services.transcription_pipeline import TranscriptionPipeline


def get_service_configuration(request: Request) -> ServiceConfiguration:
    """Get the startup configuration"""
    return request.app.state.config


def get_speech_model(request: Request) -> Optional[SpeechModel]:
    """Get the shared speech model (None only if startup never loaded one)"""
    return getattr(request.app.state, "speech_model", None)


def get_transcription_pipeline(request: Request) -> TranscriptionPipeline:
    """Get the Speech Domain transcription pipeline"""
    return request.app.state.transcription_pipeline


def initialize_dependencies(app, config: ServiceConfiguration, model: SpeechModel, pipeline: TranscriptionPipeline):
    """Attach the startup-built instances to the application"""
    app.state.config = config
    app.state.speech_model = model
    app.state.transcription_pipeline = pipeline
