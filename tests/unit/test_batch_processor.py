"""Tests for Batch Processor."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from blessings.core.exceptions import RenderError, SynthesisFailedError, VoiceUploadError
from blessings.models.schemas import BatchItem, BatchJob, ItemStatus, JobStatus, Narration, ThemeType
from blessings.services.batch_processor import BatchProcessor
from blessings.services.narration_engine import NarrationEngine
from blessings.storage.job_store import InMemoryJobStore


@pytest.fixture
def voice_provider():
    provider = MagicMock()
    provider.is_configured.return_value = True
    provider.upload_voice.return_value = "voice_1"
    provider.generate_speech.return_value = b"ID3-mp3"
    return provider


@pytest.fixture
def media():
    toolkit = MagicMock()
    toolkit.probe_duration.return_value = 4.0

    def fake_extract(video_path, output_path):
        Path(output_path).write_bytes(b"RIFF....WAVE")
        return True

    toolkit.extract_audio.side_effect = fake_extract
    return toolkit


@pytest.fixture
def renderer(settings):
    mock_renderer = MagicMock()
    mock_renderer.render.side_effect = lambda props, filename: Path(settings.output_dir) / filename
    return mock_renderer


@pytest.fixture
def job_store():
    return InMemoryJobStore()


@pytest.fixture
def processor(settings, logger, job_store, voice_provider, media, renderer):
    return BatchProcessor(
        settings,
        logger,
        job_store=job_store,
        narration_engine=NarrationEngine(settings, logger),
        voice_provider=voice_provider,
        media=media,
        renderer=renderer,
    )


@pytest.fixture
def make_job(job_store, source_video, recipients):
    def _make(items=None, **kwargs):
        job = BatchJob(
            id="batch_test",
            sender_name="小明",
            source_video_ref=source_video,
            items=items or [BatchItem(index=i, recipient=r) for i, r in enumerate(recipients)],
            **kwargs,
        )
        job_store.set(job.id, job)
        return job

    return _make


def _rendered_props(renderer):
    return [c.args[0] for c in renderer.render.call_args_list]


def test_process_renders_every_recipient(processor, make_job, voice_provider, renderer, settings):
    """Test the full pipeline with voice cloning."""
    job = make_job()

    processor.process(job.id)

    assert job.status == JobStatus.DONE
    assert [item.status for item in job.items] == [ItemStatus.DONE] * 3
    for item in job.items:
        assert item.filename.startswith(f"blessing_{item.recipient.name}_")
        assert item.output_reference == f"/output/{item.filename}"
        assert item.narration is not None
        assert item.theme == item.narration.theme

    voice_provider.upload_voice.assert_called_once()
    assert voice_provider.generate_speech.call_count == 6
    voice_provider.delete_voice.assert_called_once_with("voice_1")
    assert job.voice_clone_id is None
    assert job.extracted_audio_path is None

    props = _rendered_props(renderer)
    assert len(props) == 3
    assert props[0].tts_opening_audio_file.startswith("uploads/tts_")
    assert props[0].tts_blessing_audio_file.startswith("uploads/tts_")
    # probe reports 4s for the source video and both speech files
    assert (props[0].scene1_frames, props[0].scene2_frames, props[0].scene3_frames) == (150, 120, 165)

    assert list(Path(settings.uploads_dir).glob("tts_*")) == []
    assert list(Path(settings.temp_dir).glob("*.wav")) == []


def test_process_without_voice_provider(processor, make_job, voice_provider, media, renderer):
    """Test that an unconfigured provider renders silent videos with default timing."""
    voice_provider.is_configured.return_value = False
    media.probe_duration.return_value = None
    job = make_job()

    processor.process(job.id)

    assert job.status == JobStatus.DONE
    voice_provider.upload_voice.assert_not_called()
    voice_provider.generate_speech.assert_not_called()
    media.extract_audio.assert_not_called()
    for props in _rendered_props(renderer):
        assert props.tts_opening_audio_file is None
        assert props.tts_blessing_audio_file is None
        assert (props.scene1_frames, props.scene2_frames, props.scene3_frames) == (150, 150, 180)
        assert "ttsOpeningAudioFile" not in props.to_payload()


def test_upload_failure_degrades_to_silent(processor, make_job, voice_provider, renderer):
    voice_provider.upload_voice.side_effect = VoiceUploadError("ref.wav", "status 400")
    job = make_job()

    processor.process(job.id)

    assert job.status == JobStatus.DONE
    voice_provider.generate_speech.assert_not_called()
    voice_provider.delete_voice.assert_not_called()
    assert all(p.tts_opening_audio_file is None for p in _rendered_props(renderer))


def test_source_without_audio_degrades_to_silent(processor, make_job, voice_provider, media, settings):
    media.extract_audio.side_effect = None
    media.extract_audio.return_value = False
    job = make_job()

    processor.process(job.id)

    assert job.status == JobStatus.DONE
    voice_provider.upload_voice.assert_not_called()
    assert job.extracted_audio_path is None


def test_render_failure_is_isolated(processor, make_job, renderer, settings):
    """Test that one failed recipient does not stop the others."""
    renderer.render.side_effect = [
        Path(settings.output_dir) / "a.mp4",
        RenderError("b.mp4", "exit code 1", stderr="Composition crashed"),
        Path(settings.output_dir) / "c.mp4",
    ]
    job = make_job()

    processor.process(job.id)

    assert [item.status for item in job.items] == [ItemStatus.DONE, ItemStatus.ERROR, ItemStatus.DONE]
    assert job.items[1].error == "Composition crashed"
    assert job.items[1].output_reference is None
    assert job.status == JobStatus.DONE


def test_all_failures_fail_the_batch(processor, make_job, renderer, voice_provider):
    renderer.render.side_effect = RenderError("x.mp4", "exit code 1")
    job = make_job()

    processor.process(job.id)

    assert all(item.status == ItemStatus.ERROR for item in job.items)
    assert all(len(item.error) <= 200 for item in job.items)
    assert job.status == JobStatus.ERROR
    voice_provider.delete_voice.assert_called_once_with("voice_1")


def test_failed_segment_keeps_the_other(processor, make_job, voice_provider, renderer, recipients):
    """Test that a failed speech segment only drops that segment's audio."""
    narration = Narration(
        opening_text="老妈新年好",
        blessings=["身体倍儿棒", "吃嘛嘛香"],
        tts_opening_text="OPENING",
        tts_blessing_text="BLESSING",
        theme=ThemeType.ELEGANT,
        joyful=2,
    )
    item = BatchItem(index=0, recipient=recipients[0])
    item.attach_narration(narration)
    job = make_job(items=[item])

    def fake_speech(text, voice_id, joyful=None):
        if text == "BLESSING":
            raise SynthesisFailedError(3, "status 500")
        return b"ID3-mp3"

    voice_provider.generate_speech.side_effect = fake_speech

    processor.process(job.id)

    props = _rendered_props(renderer)[0]
    assert job.items[0].status == ItemStatus.DONE
    assert props.tts_opening_audio_file is not None
    assert props.tts_blessing_audio_file is None
    assert props.scene3_frames == 180
    assert props.theme == ThemeType.ELEGANT
    assert {c.kwargs["joyful"] for c in voice_provider.generate_speech.call_args_list} == {2}


def test_preview_narration_is_reused(processor, make_job, renderer, recipients):
    narration = Narration(
        opening_text="自定义标题",
        blessings=["一", "二"],
        tts_opening_text="开场",
        tts_blessing_text="祝福",
    )
    item = BatchItem(index=0, recipient=recipients[0])
    item.attach_narration(narration)
    job = make_job(items=[item])

    processor.process(job.id)

    assert _rendered_props(renderer)[0].opening_text == "自定义标题"
    assert job.items[0].narration == narration


def test_dedicated_audio_is_preferred(processor, make_job, voice_provider, media, tmp_path):
    dedicated = tmp_path / "dedicated.wav"
    dedicated.write_bytes(b"RIFF....WAVE")
    job = make_job(dedicated_audio_wav_path=str(dedicated))

    processor.process(job.id)

    voice_provider.upload_voice.assert_called_once_with(dedicated)
    media.extract_audio.assert_not_called()
    assert not dedicated.exists()
    assert job.dedicated_audio_wav_path is None


def test_existing_clone_is_not_uploaded_again(processor, make_job, voice_provider):
    job = make_job(voice_clone_id="voice_existing")

    processor.process(job.id)

    voice_provider.upload_voice.assert_not_called()
    voice_provider.delete_voice.assert_called_once_with("voice_existing")


def test_only_pending_items_are_processed(processor, make_job, renderer, recipients):
    done = BatchItem(index=0, recipient=recipients[0])
    done.mark_processing()
    done.mark_done("/output/old.mp4", "old.mp4")
    job = make_job(items=[done, BatchItem(index=1, recipient=recipients[1])])

    processor.process(job.id)

    assert renderer.render.call_count == 1
    assert job.items[0].filename == "old.mp4"


def test_unknown_batch(processor):
    assert processor.process("batch_missing") is None
    processor.run("batch_missing")


def test_run_fails_unfinished_items_on_crash(processor, make_job, media, voice_provider):
    """Test that an unexpected crash still leaves the batch terminal."""
    media.probe_duration.side_effect = RuntimeError("probe crashed")
    job = make_job(voice_clone_id="voice_1")

    processor.run(job.id)

    assert [item.status for item in job.items] == [ItemStatus.ERROR] * 3
    assert job.items[0].error == "probe crashed"
    assert job.status == JobStatus.ERROR
    voice_provider.delete_voice.assert_called_once_with("voice_1")


def test_public_reference(processor, settings, tmp_path):
    assert processor.public_reference(Path(settings.uploads_dir) / "tts_a.mp3") == "uploads/tts_a.mp3"
    assert processor.public_reference(tmp_path / "elsewhere" / "tts_b.mp3") == "uploads/tts_b.mp3"
