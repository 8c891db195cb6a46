"""Media Toolkit - duration probing and audio extraction with ffprobe/ffmpeg."""

import subprocess
from pathlib import Path
from typing import Any, Optional, Union

from blessings.core.config import Settings

# 16 kHz mono PCM16, the format used for voice cloning and LLM audio context
WAV_CONVERSION_ARGS = ["-vn", "-acodec", "pcm_s16le", "-ar", "16000", "-ac", "1"]


class MediaToolkit:
    """Wraps the external media tools. Every failure degrades to None/False."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize media toolkit.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def probe_duration(self, path: Union[str, Path]) -> Optional[float]:
        """
        Measure the duration of a media file.

        Args:
            path: Media file

        Returns:
            Duration in seconds, or None if probing failed for any reason
        """
        ffprobe_cmd = [
            self.settings.ffprobe_binary,
            "-v",
            "quiet",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
        try:
            result = subprocess.run(
                ffprobe_cmd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.settings.probe_timeout_seconds,
            )
            duration = float(result.stdout.strip())
        except (subprocess.SubprocessError, OSError, ValueError) as e:
            self.logger.debug(f"Could not probe duration of {path}: {e}")
            return None

        if duration != duration or duration < 0:  # NaN or negative
            return None
        return duration

    def convert_to_wav(self, input_path: Union[str, Path], output_path: Union[str, Path]) -> bool:
        """
        Convert any audio/video file to 16 kHz mono PCM16 WAV.

        Args:
            input_path: Source media
            output_path: Destination WAV (overwritten)

        Returns:
            True if the tool succeeded
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        ffmpeg_cmd = [
            self.settings.ffmpeg_binary,
            "-i",
            str(input_path),
            *WAV_CONVERSION_ARGS,
            str(output_path),
            "-y",
        ]
        self.logger.debug(f"FFmpeg command: {' '.join(ffmpeg_cmd)}")
        try:
            subprocess.run(
                ffmpeg_cmd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.settings.extract_timeout_seconds,
            )
            return True
        except subprocess.CalledProcessError as e:
            self.logger.warning(f"Audio conversion failed ({input_path}): {(e.stderr or str(e))[:200]}")
        except (subprocess.SubprocessError, OSError) as e:
            self.logger.warning(f"Audio conversion failed ({input_path}): {str(e)[:200]}")
        return False

    def extract_audio(self, video_path: Union[str, Path], output_path: Union[str, Path]) -> bool:
        """
        Extract the audio track of a video to WAV.

        Args:
            video_path: Source video
            output_path: Destination WAV

        Returns:
            True only if conversion succeeded and the output is non-empty
        """
        if not self.convert_to_wav(video_path, output_path):
            return False
        output_path = Path(output_path)
        if not output_path.exists() or output_path.stat().st_size == 0:
            self.logger.warning(f"Audio extraction produced no output: {output_path}")
            return False
        self.logger.info(f"Extracted audio: {output_path}")
        return True
