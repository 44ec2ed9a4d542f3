"""Pytest fixtures."""

from pathlib import Path

import pytest

from speech_service.domains.speech.models.audio_data import UploadedAudio
from speech_service.domains.speech.services.model_manager import SpeechModel


@pytest.fixture
def fake_model(tmp_path: Path) -> SpeechModel:
    return SpeechModel(model_path=tmp_path / "model", handle=object())


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def make_upload(upload_dir: Path):
    counter = {"n": 0}

    def _make(content: bytes = b"\x00" * 64, filename: str = "clip.webm") -> UploadedAudio:
        counter["n"] += 1
        path = upload_dir / f"upload_{counter['n']:04d}"
        path.write_bytes(content)
        return UploadedAudio(temp_file_path=path, original_filename=filename, data_size=len(content))

    return _make
