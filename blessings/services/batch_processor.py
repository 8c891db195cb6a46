"""Batch Processor - runs the per-recipient pipeline for one batch."""

from pathlib import Path
from typing import Any, Optional

from blessings.core.config import Settings
from blessings.core.exceptions import RenderError
from blessings.models.schemas import (
    BatchItem,
    BatchJob,
    ItemStatus,
    Narration,
    RenderProps,
    SpeechSegment,
)
from blessings.services.batch_resources import release_batch_resources
from blessings.services.festivals import theme_display_name
from blessings.services.media_toolkit import MediaToolkit
from blessings.services.narration_engine import NarrationEngine
from blessings.services.scene_timing import FPS, compute_scene_timing
from blessings.services.video_renderer import VideoRenderer
from blessings.services.voice_provider import VoiceProvider
from blessings.storage.job_store import JobStore
from blessings.utils.error_handler import format_error_message, get_fallback_suggestion, truncate_error_message
from blessings.utils.io_utils import build_output_filename, generate_id, remove_file
from blessings.utils.parallel_executor import ParallelExecutor

DEFAULT_SEGMENT_DURATION_SEC = 6.0


class BatchProcessor:
    """Generates one video per recipient, sequentially, and tracks progress on the job."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        job_store: JobStore,
        narration_engine: NarrationEngine,
        voice_provider: VoiceProvider,
        media: MediaToolkit,
        renderer: VideoRenderer,
        parallel_executor: Optional[ParallelExecutor] = None,
    ):
        """
        Initialize batch processor.

        Args:
            settings: Application settings
            logger: Logger instance
            job_store: Store holding the batches
            narration_engine: Narration generator
            voice_provider: Voice cloning / speech provider
            media: Media probe and extraction tools
            renderer: External video renderer
            parallel_executor: Executor for the two speech segments of a recipient
        """
        self.settings = settings
        self.logger = logger
        self.job_store = job_store
        self.narration_engine = narration_engine
        self.voice_provider = voice_provider
        self.media = media
        self.renderer = renderer
        self.parallel_executor = parallel_executor or ParallelExecutor(logger, max_workers=2)

    def public_path(self, reference: str) -> Path:
        """Resolve a reference relative to the public directory."""
        return Path(self.settings.public_dir) / reference

    def public_reference(self, path: Path) -> str:
        """Reference of a file under the public directory, as the renderer expects it."""
        try:
            return path.resolve().relative_to(Path(self.settings.public_dir).resolve()).as_posix()
        except ValueError:
            return f"uploads/{path.name}"

    def run(self, batch_id: str) -> None:
        """
        Background entry point.

        An unexpected failure fails every unfinished item, so the batch
        always ends in a terminal state.
        """
        try:
            self.process(batch_id)
        except Exception as e:
            self.logger.exception(f"Batch {batch_id} aborted: {e}")
            job = self.job_store.get(batch_id)
            if job is None:
                return
            message = truncate_error_message(e, self.settings.error_message_max_length)
            for item in job.items:
                if not item.status.is_terminal:
                    item.mark_error(message)
            job.finalize()

    def process(self, batch_id: str) -> Optional[BatchJob]:
        """
        Process every pending item of a batch.

        Args:
            batch_id: Batch identifier

        Returns:
            The finished job, or None if the batch does not exist
        """
        job = self.job_store.get(batch_id)
        if job is None:
            self.logger.warning(f"Batch {batch_id} not found, nothing to process")
            return None

        log = self.logger.bind(batch_id=batch_id)
        log.info(f"Processing batch {batch_id}: {len(job.items)} recipients ({job.festival.value})")

        try:
            duration = self.media.probe_duration(self.public_path(job.source_video_ref))
            job.source_video_duration_sec = duration
            if duration is not None:
                log.info(f"Source video duration: {duration:.1f}s")

            self._prepare_voice(job, log)

            total = len(job.items)
            for item in job.items:
                if item.status != ItemStatus.PENDING:
                    continue
                log.info(f"[{item.index + 1}/{total}] Processing {item.recipient.name} ({item.recipient.relation})")
                self._process_item(job, item, log)
        finally:
            release_batch_resources(job, self.voice_provider, log)

        status = job.finalize()
        log.info(f"Batch {batch_id} finished ({status.value}): {job.done_count}/{len(job.items)} videos")
        return job

    def _resolve_reference_audio(self, job: BatchJob, log: Any) -> Optional[Path]:
        """Pick the cloning source: converted recording, earlier extraction, a fresh conversion, then the video."""
        if job.dedicated_audio_wav_path and Path(job.dedicated_audio_wav_path).exists():
            log.info("Using the dedicated voice recording for cloning")
            return Path(job.dedicated_audio_wav_path)
        if job.extracted_audio_path and Path(job.extracted_audio_path).exists():
            log.info("Reusing audio extracted during preview")
            return Path(job.extracted_audio_path)

        if job.dedicated_audio_ref:
            wav_path = Path(self.settings.temp_dir) / f"dedicated_audio_{job.id}.wav"
            log.info("Converting the dedicated voice recording for cloning")
            if self.media.convert_to_wav(self.public_path(job.dedicated_audio_ref), wav_path) and wav_path.exists():
                job.dedicated_audio_wav_path = str(wav_path)
                return wav_path
            remove_file(wav_path, log)
            log.warning("Dedicated recording could not be converted, extracting from the video instead")

        audio_path = Path(self.settings.temp_dir) / f"ref_audio_{job.id}.wav"
        log.info("Extracting reference audio from the source video")
        if self.media.extract_audio(self.public_path(job.source_video_ref), audio_path):
            job.extracted_audio_path = str(audio_path)
            return audio_path
        # A failed extraction may still leave a partial file behind
        remove_file(audio_path, log)
        log.warning("Source video has no usable audio, rendering without voiceover")
        return None

    def _prepare_voice(self, job: BatchJob, log: Any) -> None:
        if not self.voice_provider.is_configured():
            log.info("Voice provider not configured, rendering without voiceover")
            return
        if job.voice_clone_id:
            return

        audio_path = self._resolve_reference_audio(job, log)
        if audio_path is None:
            return
        try:
            job.voice_clone_id = self.voice_provider.upload_voice(audio_path)
        except Exception as e:
            log.error(
                format_error_message(
                    "Voice cloning", e, {"batch_id": job.id}, get_fallback_suggestion("TTS", e)
                )
            )

    def _synthesize_segment(self, text: str, voice_id: str, joyful: Optional[int]) -> SpeechSegment:
        audio = self.voice_provider.generate_speech(text, voice_id, joyful=joyful)
        uploads_dir = Path(self.settings.uploads_dir)
        uploads_dir.mkdir(parents=True, exist_ok=True)
        path = uploads_dir / f"tts_{generate_id()}.mp3"
        path.write_bytes(audio)

        duration = self.media.probe_duration(path)
        if duration is None:
            duration = DEFAULT_SEGMENT_DURATION_SEC
        return SpeechSegment(path=path, reference=self.public_reference(path), duration_sec=duration)

    def _synthesize_segments(
        self, job: BatchJob, item: BatchItem, narration: Narration
    ) -> tuple[Optional[SpeechSegment], Optional[SpeechSegment]]:
        """Synthesize opening and blessing concurrently; a failed segment is None."""
        voice_id = job.voice_clone_id
        results = self.parallel_executor.run_all(
            [
                lambda: self._synthesize_segment(narration.tts_opening_text, voice_id, narration.joyful),
                lambda: self._synthesize_segment(narration.tts_blessing_text, voice_id, narration.joyful),
            ],
            task_names=[f"{item.recipient.name} opening speech", f"{item.recipient.name} blessing speech"],
            batch_id=job.id,
        )
        (opening, _), (blessing, _) = results
        return opening, blessing

    def _process_item(self, job: BatchJob, item: BatchItem, log: Any) -> None:
        """Run one recipient; any failure ends as an item error, never a batch abort."""
        item.mark_processing()
        segments: list[SpeechSegment] = []
        try:
            if item.narration is not None:
                narration = item.narration
                log.debug("Reusing narration from preview")
            else:
                narration = self.narration_engine.generate(item.recipient, job.sender_name, job.festival)
                item.attach_narration(narration)
            log.info(
                f"   Theme: {theme_display_name(narration.theme)} ({narration.theme.value}) | "
                f"Opening: {narration.opening_text} | Blessings: {' | '.join(narration.blessings)}"
            )

            opening, blessing = None, None
            if job.voice_clone_id:
                opening, blessing = self._synthesize_segments(job, item, narration)
                segments = [s for s in (opening, blessing) if s is not None]

            timing = compute_scene_timing(
                source_video_duration_sec=job.source_video_duration_sec,
                opening_duration_sec=opening.duration_sec if opening else None,
                blessing_duration_sec=blessing.duration_sec if blessing else None,
            )
            log.info(
                f"   Frames: scene1={timing.scene1_frames} scene2={timing.scene2_frames} "
                f"scene3={timing.scene3_frames} outro={timing.outro_frames} "
                f"total={timing.total_frames} ({timing.total_frames / FPS:.1f}s)"
            )

            props = RenderProps(
                sender_name=job.sender_name,
                recipient_name=item.recipient.name,
                opening_text=narration.opening_text,
                blessings=narration.blessings,
                video_file=job.source_video_ref,
                tts_opening_text=narration.tts_opening_text,
                theme=narration.theme,
                festival=job.festival,
                scene1_frames=timing.scene1_frames,
                scene2_frames=timing.scene2_frames,
                scene3_frames=timing.scene3_frames,
                tts_opening_audio_file=opening.reference if opening else None,
                tts_blessing_audio_file=blessing.reference if blessing else None,
            )

            filename = build_output_filename(item.recipient.name)
            self.renderer.render(props, filename)
            item.mark_done(f"/output/{filename}", filename)
            log.info(f"✅ Done: {item.recipient.name}")
        except Exception as e:
            item.mark_error(truncate_error_message(e, self.settings.error_message_max_length))
            suggestion = get_fallback_suggestion("Render", e) if isinstance(e, RenderError) else None
            log.error(format_error_message("Video generation", e, {"recipient": item.recipient.name}, suggestion))
        finally:
            for segment in segments:
                remove_file(segment.path, log)
