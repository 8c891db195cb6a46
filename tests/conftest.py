"""Shared pytest fixtures and configuration."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from blessings.core.config import Settings
from blessings.core.logging_config import get_logger
from blessings.models.schemas import Recipient
from blessings.services.batch_processor import BatchProcessor
from blessings.services.batch_service import BatchService
from blessings.services.narration_engine import NarrationEngine
from blessings.storage.job_store import InMemoryJobStore


@pytest.fixture
def settings(tmp_path):
    """Create test settings with providers unconfigured and directories under tmp_path."""
    public_dir = tmp_path / "public"
    test_settings = Settings(
        openai_api_key=None,
        elevenlabs_api_key=None,
        log_file=None,
        public_dir=str(public_dir),
        uploads_dir=str(public_dir / "uploads"),
        output_dir=str(tmp_path / "out"),
        temp_dir=str(tmp_path / "tmp"),
    )
    test_settings.ensure_directories()
    return test_settings


@pytest.fixture
def tts_settings(settings):
    """Settings with the voice provider configured."""
    return settings.model_copy(update={"elevenlabs_api_key": "test-elevenlabs-key"})


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def source_video(settings) -> str:
    """Create a dummy uploaded source video; returns its public reference."""
    video_path = Path(settings.uploads_dir) / "video_1707900000000.mp4"
    video_path.write_bytes(b"fake video content")
    return "uploads/video_1707900000000.mp4"


@pytest.fixture
def recipients() -> list[Recipient]:
    """Three recipients covering elder, friend and lover relations."""
    return [
        Recipient(name="张三", relation="我妈", background=""),
        Recipient(name="李四", relation="发小", background="刚升职"),
        Recipient(name="小美", relation="老婆", background=""),
    ]


@pytest.fixture
def mock_voice_provider():
    """Configured voice provider double."""
    provider = MagicMock()
    provider.is_configured.return_value = True
    provider.upload_voice.return_value = "voice_1"
    provider.generate_speech.return_value = b"ID3-mp3"
    return provider


@pytest.fixture
def mock_media():
    """Media toolkit double whose conversions write small WAV files."""
    media = MagicMock()
    media.probe_duration.return_value = 4.0

    def fake_convert(input_path, output_path):
        Path(output_path).write_bytes(b"RIFF....WAVE")
        return True

    media.convert_to_wav.side_effect = fake_convert
    media.extract_audio.side_effect = fake_convert
    return media


@pytest.fixture
def mock_renderer(settings):
    """Renderer double that writes a placeholder video."""
    renderer = MagicMock()

    def fake_render(props, filename):
        output = Path(settings.output_dir) / filename
        output.write_bytes(b"fake video")
        return output

    renderer.render.side_effect = fake_render
    return renderer


@pytest.fixture
def batch_service(settings, logger, mock_voice_provider, mock_media, mock_renderer):
    """BatchService with template narration and inline processing."""
    job_store = InMemoryJobStore()
    processor = BatchProcessor(
        settings,
        logger,
        job_store=job_store,
        narration_engine=NarrationEngine(settings, logger),
        voice_provider=mock_voice_provider,
        media=mock_media,
        renderer=mock_renderer,
    )
    return BatchService(settings, logger, job_store, processor, run_in_background=False)
