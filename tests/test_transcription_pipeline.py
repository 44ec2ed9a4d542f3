import asyncio
import json
import shutil
from pathlib import Path

import pytest

from fakes import FakeSessionFactory, FakeTranscoder, FakeUploadFile
from speech_service.domains.speech.services import recognizer as recognizer_module
from speech_service.domains.speech.services.recognizer import VoskRecognizerSession
from speech_service.domains.speech.services.transcoder import FFmpegTranscoder
from speech_service.domains.speech.services.upload_storage import save_upload
from speech_service.domains.speech.services.transcription_pipeline import (
    TempFileScope, TranscriptionPipeline, iter_chunks
)


def _pipeline(model, transcoder, factory, chunk_size=4000):
    return TranscriptionPipeline(
        model=model, transcoder=transcoder, session_factory=factory, chunk_size=chunk_size
    )


def test_iter_chunks_preserves_order_and_bytes():
    data = bytes(range(256)) * 40
    chunks = list(iter_chunks(data, 4000))
    assert [len(c) for c in chunks] == [4000, 4000, 2240]
    assert b"".join(chunks) == data


def test_temp_file_scope_removes_files_on_error(tmp_path: Path):
    existing = tmp_path / "a"
    existing.write_bytes(b"x")
    never_created = tmp_path / "b"
    with pytest.raises(RuntimeError):
        with TempFileScope(existing, never_created):
            raise RuntimeError("boom")
    assert not existing.exists()
    assert not never_created.exists()


@pytest.mark.asyncio
async def test_success_feeds_chunks_in_order_and_cleans_up(fake_model, make_upload):
    content = bytes(range(200)) * 50
    upload = make_upload(content)
    transcoder = FakeTranscoder()
    factory = FakeSessionFactory(final_text="hello world", final_confidence=0.87)

    result = await _pipeline(fake_model, transcoder, factory).process_upload(upload)

    assert result.success
    assert result.transcript == "hello world"
    assert result.confidence == 0.87
    session = factory.sessions[0]
    assert session.sample_rate == 16000
    assert [len(c) for c in session.chunks] == [4000, 4000, 2000]
    assert b"".join(session.chunks) == content
    assert session.final_calls == 1
    assert session.dispose_calls == 1
    _, converted_path = transcoder.calls[0]
    assert converted_path.name == upload.temp_file_path.name + "_converted.wav"
    assert not upload.temp_file_path.exists()
    assert not converted_path.exists()


@pytest.mark.asyncio
async def test_segments_are_trimmed_and_joined_with_single_spaces(fake_model, make_upload):
    upload = make_upload(b"\x01" * 12000)
    factory = FakeSessionFactory(
        boundaries={1, 2},
        segment_texts=["  hello there ", "   "],
        final_text=" general kenobi ",
    )

    result = await _pipeline(fake_model, FakeTranscoder(), factory).process_upload(upload)

    assert result.transcript == "hello there general kenobi"
    assert "  " not in result.transcript


@pytest.mark.asyncio
async def test_silent_audio_gives_empty_transcript(fake_model, make_upload):
    upload = make_upload(b"\x00" * 64000)
    factory = FakeSessionFactory(final_text="")

    result = await _pipeline(fake_model, FakeTranscoder(), factory).process_upload(upload)

    assert result.success
    assert result.to_dict() == {"success": True, "transcript": "", "confidence": None}


@pytest.mark.asyncio
async def test_confidence_is_word_weighted_across_segments(fake_model, make_upload):
    upload = make_upload(b"\x01" * 12000)
    factory = FakeSessionFactory(
        boundaries={1, 2},
        segment_texts=["turn left", "stop"],
        segment_confidences=[0.8, 0.5],
        final_text="",
    )

    result = await _pipeline(fake_model, FakeTranscoder(), factory).process_upload(upload)

    assert result.transcript == "turn left stop"
    assert result.confidence == pytest.approx(0.7)


class _TrailingSilenceKaldi:
    """Reports one scored utterance, then an empty final flush."""

    def __init__(self, model_handle, sample_rate):
        self.accepted = 0

    def SetWords(self, enabled):
        pass

    def AcceptWaveform(self, chunk):
        self.accepted += 1
        return self.accepted == 1

    def Result(self):
        return json.dumps({
            "text": "turn left",
            "result": [{"word": "turn", "conf": 0.9}, {"word": "left", "conf": 0.8}],
        })

    def FinalResult(self):
        return json.dumps({"text": ""})


@pytest.mark.asyncio
async def test_empty_final_result_keeps_segment_confidence(fake_model, make_upload, monkeypatch):
    monkeypatch.setattr(recognizer_module, "KaldiRecognizer", _TrailingSilenceKaldi)
    upload = make_upload(b"\x01" * 12000)

    result = await _pipeline(fake_model, FakeTranscoder(), VoskRecognizerSession).process_upload(upload)

    assert result.success
    assert result.transcript == "turn left"
    assert result.confidence == pytest.approx(0.85)


@pytest.mark.asyncio
async def test_transcode_failure_never_opens_recognizer(fake_model, make_upload):
    upload = make_upload()
    transcoder = FakeTranscoder(exit_code=1)
    factory = FakeSessionFactory()

    result = await _pipeline(fake_model, transcoder, factory).process_upload(upload)

    assert not result.success
    assert result.error_code == "transcoder_exit_nonzero"
    assert result.failed_state == "transcoding"
    assert result.status_code == 500
    assert factory.sessions == []
    assert not upload.temp_file_path.exists()


@pytest.mark.asyncio
async def test_real_process_exiting_nonzero_is_a_transcode_failure(fake_model, make_upload, upload_dir):
    false_binary = shutil.which("false")
    if false_binary is None:
        pytest.skip("'false' binary not available")
    upload = make_upload()
    factory = FakeSessionFactory()

    result = await _pipeline(fake_model, FFmpegTranscoder(binary=false_binary), factory).process_upload(upload)

    assert result.error_code == "transcoder_exit_nonzero"
    assert factory.sessions == []
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_missing_transcoder_binary_is_a_launch_failure(fake_model, make_upload, upload_dir):
    upload = make_upload()
    transcoder = FFmpegTranscoder(binary="definitely-not-installed-ffmpeg-xyz")

    result = await _pipeline(fake_model, transcoder, FakeSessionFactory()).process_upload(upload)

    assert result.error_code == "transcoder_launch_failed"
    assert "Failed to launch" in result.error
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_feed_error_disposes_session_exactly_once(fake_model, make_upload):
    upload = make_upload(b"\x02" * 9000)
    transcoder = FakeTranscoder()
    factory = FakeSessionFactory(fail_on_feed=2)

    result = await _pipeline(fake_model, transcoder, factory).process_upload(upload)

    assert not result.success
    assert result.error_code == "recognition_failure"
    assert result.failed_state == "recognizing"
    assert "decoder exploded" in result.error
    session = factory.sessions[0]
    assert session.dispose_calls == 1
    assert session.final_calls == 0
    _, converted_path = transcoder.calls[0]
    assert not upload.temp_file_path.exists()
    assert not converted_path.exists()


@pytest.mark.asyncio
async def test_unreadable_converted_audio_is_a_recognition_failure(fake_model, make_upload, upload_dir):
    upload = make_upload()
    factory = FakeSessionFactory()

    result = await _pipeline(fake_model, FakeTranscoder(output=b"not a wav file"), factory).process_upload(upload)

    assert result.error_code == "recognition_failure"
    assert factory.sessions == []
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_wrong_sample_rate_is_rejected(fake_model, make_upload):
    upload = make_upload()

    result = await _pipeline(
        fake_model, FakeTranscoder(sample_rate=44100), FakeSessionFactory()
    ).process_upload(upload)

    assert result.error_code == "recognition_failure"
    assert "16000 Hz" in result.error


@pytest.mark.asyncio
async def test_missing_converted_file_is_a_recognition_failure(fake_model, make_upload):
    class NoOutputTranscoder(FakeTranscoder):
        async def convert(self, input_path, output_path):
            converted = await super().convert(input_path, output_path)
            Path(output_path).unlink()
            return converted

    result = await _pipeline(fake_model, NoOutputTranscoder(), FakeSessionFactory()).process_upload(make_upload())

    assert result.error_code == "recognition_failure"


@pytest.mark.asyncio
async def test_concurrent_requests_keep_their_own_transcripts_and_paths(fake_model, upload_dir):
    count = 8
    transcoder = FakeTranscoder(delay=0.02)
    factory = FakeSessionFactory(echo=True)
    pipeline = _pipeline(fake_model, transcoder, factory)

    async def request(i):
        uploaded = await save_upload(FakeUploadFile(f"request-{i}".encode()), upload_dir)
        return await pipeline.process_upload(uploaded)

    results = await asyncio.gather(*(request(i) for i in range(count)))

    assert [r.transcript for r in results] == [f"request-{i}" for i in range(count)]
    paths = [p for call in transcoder.calls for p in call]
    assert len(paths) == 2 * count
    assert len(set(paths)) == len(paths)
    assert len(factory.sessions) == count
    assert all(s.dispose_calls == 1 for s in factory.sessions)
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_metrics_track_outcomes(fake_model, make_upload):
    pipeline = _pipeline(fake_model, FakeTranscoder(), FakeSessionFactory(final_text="ok"))
    await pipeline.process_upload(make_upload())
    pipeline.transcoder = FakeTranscoder(exit_code=1)
    await pipeline.process_upload(make_upload())

    metrics = pipeline.get_metrics()
    assert metrics["total_processed"] == 2
    assert metrics["successful_transcriptions"] == 1
    assert metrics["failed_transcriptions"] == 1
    assert metrics["avg_processing_time"] >= 0.0


def test_chunk_size_must_be_positive(fake_model):
    with pytest.raises(ValueError):
        TranscriptionPipeline(model=fake_model, chunk_size=0)
