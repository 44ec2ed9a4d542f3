#!/usr/bin/env python3
"""
FastAPI Web Application - Entry Point

App setup, middleware configuration and route registration for the
speech-to-text service. The speech model is loaded before the listener
binds; a missing or broken model stops the process.
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from speech_service.api.dependencies.domain_services import initialize_dependencies
from speech_service.api.middleware.error_handler import setup_exception_handlers
from speech_service.config import ServiceConfiguration, load_service_configuration
from speech_service.domains.speech.services.model_manager import SpeechModel
from speech_service.domains.speech.services.recognizer import SessionFactory, VoskRecognizerSession
from speech_service.domains.speech.services.transcoder import FFmpegTranscoder
from speech_service.domains.speech.services.transcription_pipeline import TranscriptionPipeline
from speech_service.shared.exceptions import ConfigurationError, ModelLoadFailure

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def create_app(
    config: Optional[ServiceConfiguration] = None,
    model: Optional[SpeechModel] = None,
    transcoder: Optional[FFmpegTranscoder] = None,
    session_factory: SessionFactory = VoskRecognizerSession
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Service settings (loaded from file/environment if None)
        model: Loaded speech model (loaded from config.model_path if None)
        transcoder: Transcoder override (ffmpeg from config if None)
        session_factory: Recognizer session constructor

    Returns:
        Configured FastAPI application instance

    Raises:
        ModelLoadFailure: If the model has to be loaded and cannot be
    """
    config = config or load_service_configuration()
    if model is None:
        model = SpeechModel.load(config.model_path, log_level=config.vosk_log_level)

    transcoder = transcoder or FFmpegTranscoder(
        binary=config.ffmpeg_binary,
        sample_rate=config.sample_rate,
        timeout_seconds=config.transcode_timeout_seconds
    )
    pipeline = TranscriptionPipeline(
        model=model,
        transcoder=transcoder,
        session_factory=session_factory,
        chunk_size=config.chunk_size,
        sample_rate=config.sample_rate
    )

    app = FastAPI(
        title="Speech-to-Text Service",
        description="Upload an audio file, get its transcript",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["Content-Type"],
    )

    initialize_dependencies(app, config, model, pipeline)
    setup_exception_handlers(app)
    register_routes(app)

    logger.info("FastAPI application created and configured")
    return app


def register_routes(app: FastAPI):
    """
    Register all API route modules.

    Args:
        app: FastAPI application instance
    """
    from speech_service.api.v1.speech_routes import router as speech_router
    from speech_service.api.v1.health_routes import router as health_router

    app.include_router(speech_router)
    app.include_router(health_router)

    logger.info("All API routes registered")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""
    config: ServiceConfiguration = app.state.config
    config.upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"🚀 Speech service ready, uploads in {config.upload_dir}")

    yield

    logger.info("🛑 Speech service shutting down")


def main():
    """
    Main entry point: load configuration and model, then serve.
    """
    try:
        config = load_service_configuration()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"❌ Invalid configuration: {e.message} {e.context}")
        sys.exit(1)

    configure_logging(config.log_level)
    logger.info(f"Starting speech service with {config.to_dict()}")

    try:
        model = SpeechModel.load(config.model_path, log_level=config.vosk_log_level)
    except ModelLoadFailure as e:
        logger.error(f"❌ {e.message}")
        sys.exit(1)

    app = create_app(config=config, model=model)

    try:
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
            access_log=True
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()
