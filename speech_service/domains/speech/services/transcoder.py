"""
Speech Domain - Transcoder

Runs ffmpeg as a child process to convert any uploaded container/codec into
16 kHz mono linear PCM WAV.
"""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from speech_service.domains.speech.models.audio_data import ConvertedAudio
from speech_service.shared.exceptions import TranscodeFailure, TranscodeTimeout

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 2000


class FFmpegTranscoder:
    """
    Async wrapper around the ffmpeg command line.

    Only the exit status decides success; stderr is kept for logs and
    error context.
    """

    def __init__(
        self,
        binary: str = "ffmpeg",
        sample_rate: int = 16000,
        channels: int = 1,
        timeout_seconds: Optional[float] = None
    ):
        self.binary = binary
        self.sample_rate = sample_rate
        self.channels = channels
        self.timeout_seconds = timeout_seconds

    def build_command(self, input_path: Path, output_path: Path) -> List[str]:
        return [
            self.binary,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i", str(input_path),
            "-ar", str(self.sample_rate),
            "-ac", str(self.channels),
            "-acodec", "pcm_s16le",
            "-f", "wav",
            str(output_path),
        ]

    async def convert(self, input_path: Path, output_path: Path) -> ConvertedAudio:
        """
        Convert input_path into output_path.

        Returns:
            ConvertedAudio describing output_path

        Raises:
            TranscodeFailure: If the process cannot be launched or exits nonzero
            TranscodeTimeout: If timeout_seconds is set and exceeded
        """
        command = self.build_command(input_path, output_path)
        logger.debug(f"Starting transcoder: {' '.join(command)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeFailure(
                f"Failed to launch {self.binary}: {e}",
                error_code="transcoder_launch_failed",
                cause=e
            ) from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise TranscodeTimeout(
                f"{self.binary} did not finish within {self.timeout_seconds}s",
                timeout_seconds=self.timeout_seconds
            )
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        diagnostics = (stderr or b"").decode("utf-8", errors="replace").strip()
        if diagnostics:
            logger.debug(f"{self.binary} output for {input_path}:\n{diagnostics}")

        if proc.returncode != 0:
            raise TranscodeFailure(
                f"{self.binary} exited with code {proc.returncode}",
                error_code="transcoder_exit_nonzero",
                exit_code=proc.returncode,
                stderr_tail=diagnostics[-STDERR_TAIL_CHARS:]
            )

        return ConvertedAudio(
            temp_file_path=Path(output_path),
            sample_rate=self.sample_rate,
            channels=self.channels
        )
