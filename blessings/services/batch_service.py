"""Batch Service - operations offered to the route layer."""

import threading
import time
import zipfile
from pathlib import Path
from typing import Any, Optional

from blessings.core.config import Settings
from blessings.core.exceptions import BatchStateError, InvalidTransitionError, JobNotFoundError, NoFinishedVideosError
from blessings.models.schemas import (
    BatchAccepted,
    BatchItem,
    BatchJob,
    BatchPreviewResult,
    BatchRequest,
    BatchStatus,
    ItemStatus,
    ItemStatusView,
    Narration,
    NarrationEdit,
    NarrationView,
    PreviewItem,
)
from blessings.services.batch_processor import BatchProcessor
from blessings.services.batch_resources import release_batch_resources
from blessings.services.festivals import theme_display_name
from blessings.services.media_toolkit import MediaToolkit
from blessings.services.narration_engine import NarrationEngine
from blessings.services.video_renderer import VideoRenderer
from blessings.services.voice_provider import get_voice_provider
from blessings.storage.job_store import InMemoryJobStore, JobStore
from blessings.utils.io_utils import generate_id, remove_file


def narration_view(narration: Narration) -> NarrationView:
    return NarrationView(
        opening_text=narration.opening_text,
        blessings=list(narration.blessings),
        tts_opening_text=narration.tts_opening_text,
        tts_blessing_text=narration.tts_blessing_text,
        theme=narration.theme,
        theme_name=theme_display_name(narration.theme),
        joyful=narration.joyful,
    )


class BatchService:
    """Creates, confirms, inspects and discards batches."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        job_store: JobStore,
        processor: BatchProcessor,
        run_in_background: bool = True,
    ):
        """
        Initialize the batch service.

        Args:
            settings: Application settings
            logger: Logger instance
            job_store: Store holding the batches
            processor: Batch processor (shares narration, voice and media services)
            run_in_background: Start processing on a worker thread; False runs it inline
        """
        self.settings = settings
        self.logger = logger
        self.job_store = job_store
        self.processor = processor
        self.run_in_background = run_in_background
        self._confirm_lock = threading.Lock()

    @property
    def narration_engine(self) -> NarrationEngine:
        return self.processor.narration_engine

    @property
    def media(self) -> MediaToolkit:
        return self.processor.media

    def _get_job(self, batch_id: str) -> BatchJob:
        job = self.job_store.get(batch_id)
        if job is None:
            raise JobNotFoundError(batch_id)
        return job

    def _start_processing(self, batch_id: str) -> None:
        if self.run_in_background:
            worker = threading.Thread(target=self.processor.run, args=(batch_id,), name=f"batch-{batch_id}", daemon=True)
            worker.start()
        else:
            self.processor.run(batch_id)

    def _log_request(self, request: BatchRequest, batch_id: str, mode: str) -> None:
        self.logger.info("=" * 60)
        self.logger.info(f"{mode} batch {batch_id} ({request.festival.value})")
        self.logger.info(f"Sender: {request.sender_name}")
        self.logger.info(f"Video: {request.video_ref}")
        self.logger.info(f"Dedicated audio: {request.audio_ref or 'none (extracted from video)'}")
        self.logger.info(f"LLM: {'on' if self.narration_engine.is_llm_configured() else 'off (templates)'}")
        self.logger.info(f"TTS: {'on' if self.processor.voice_provider.is_configured() else 'off'}")
        self.logger.info(f"Recipients: {len(request.recipients)}")
        self.logger.info("=" * 60)

    def _prepare_preview_audio(self, request: BatchRequest, batch_id: str) -> tuple[Optional[str], Optional[str]]:
        """
        Prepare reference audio for narration and cloning.

        Returns:
            (audio for narration context, dedicated WAV path); both None when neither provider needs audio
        """
        if not (self.narration_engine.is_llm_configured() or self.processor.voice_provider.is_configured()):
            return None, None

        temp_dir = Path(self.settings.temp_dir)
        temp_dir.mkdir(parents=True, exist_ok=True)

        if request.audio_ref:
            wav_path = temp_dir / f"dedicated_audio_{batch_id}.wav"
            source = self.processor.public_path(request.audio_ref)
            if self.media.convert_to_wav(source, wav_path) and wav_path.exists() and wav_path.stat().st_size > 0:
                self.logger.info(f"Dedicated recording converted ({wav_path.stat().st_size / (1024 * 1024):.1f}MB)")
                return str(wav_path), str(wav_path)
            remove_file(wav_path, self.logger)
            self.logger.warning("Dedicated recording could not be converted, extracting from video instead")

        audio_path = temp_dir / f"audio_{batch_id}.wav"
        if self.media.extract_audio(self.processor.public_path(request.video_ref), audio_path):
            return str(audio_path), None
        remove_file(audio_path, self.logger)
        self.logger.warning("Source video has no usable audio")
        return None, None

    def create_preview(self, request: BatchRequest) -> BatchPreviewResult:
        """
        Generate narration for every recipient and keep the batch for confirmation.

        Args:
            request: Validated batch request

        Returns:
            Batch id plus the per-recipient narration preview
        """
        batch_id = f"batch_{generate_id()[:12]}"
        self._log_request(request, batch_id, "Preview")

        preview_audio, dedicated_wav = self._prepare_preview_audio(request, batch_id)

        items = []
        total = len(request.recipients)
        for index, recipient in enumerate(request.recipients):
            self.logger.info(f"[{index + 1}/{total}] Writing narration for {recipient.name}")
            narration = self.narration_engine.generate(recipient, request.sender_name, request.festival, preview_audio)
            item = BatchItem(index=index, recipient=recipient)
            item.attach_narration(narration)
            items.append(item)

        job = BatchJob(
            id=batch_id,
            sender_name=request.sender_name,
            source_video_ref=request.video_ref,
            dedicated_audio_ref=request.audio_ref,
            festival=request.festival,
            # a dedicated WAV is tracked only on its own field
            extracted_audio_path=preview_audio if dedicated_wav is None else None,
            dedicated_audio_wav_path=dedicated_wav,
            items=items,
            preview_only=True,
        )
        self.job_store.set(batch_id, job)
        self.logger.info(f"Preview ready for batch {batch_id}, waiting for confirmation")

        return BatchPreviewResult(
            batch_id=batch_id,
            total=total,
            items=[
                PreviewItem(
                    index=item.index,
                    recipient_name=item.recipient.name,
                    relation=item.recipient.relation,
                    background=item.recipient.background,
                    narration=narration_view(item.narration),
                )
                for item in items
            ],
        )

    def create_render(self, request: BatchRequest) -> BatchAccepted:
        """
        One-shot mode: store the batch without narration and start processing.

        Args:
            request: Validated batch request

        Returns:
            Batch id and item count
        """
        batch_id = f"batch_{generate_id()[:12]}"
        self._log_request(request, batch_id, "Render")

        job = BatchJob(
            id=batch_id,
            sender_name=request.sender_name,
            source_video_ref=request.video_ref,
            dedicated_audio_ref=request.audio_ref,
            festival=request.festival,
            items=[BatchItem(index=i, recipient=r) for i, r in enumerate(request.recipients)],
        )
        self.job_store.set(batch_id, job)
        self._start_processing(batch_id)
        return BatchAccepted(batch_id=batch_id, total=len(job.items))

    def _apply_edit(self, item: BatchItem, edit: NarrationEdit) -> None:
        if item.status != ItemStatus.PENDING:
            raise InvalidTransitionError(f"Item {item.index} is {item.status.value}; narration is frozen")
        if item.narration is None:
            return

        updates: dict[str, Any] = {}
        if edit.opening_text:
            updates["opening_text"] = edit.opening_text
        if edit.blessings is not None:
            updates["blessings"] = [b for b in edit.blessings if b]
        if edit.tts_opening_text:
            updates["tts_opening_text"] = edit.tts_opening_text
        if edit.tts_blessing_text:
            updates["tts_blessing_text"] = edit.tts_blessing_text
        if edit.joyful is not None:
            updates["joyful"] = edit.joyful
        if edit.theme is not None:
            updates["theme"] = edit.theme
        if updates:
            item.attach_narration(item.narration.model_copy(update=updates))

    def confirm_and_render(self, batch_id: str, edits: Optional[list[NarrationEdit]] = None) -> BatchAccepted:
        """
        Apply caller edits to a previewed batch and start rendering.

        Args:
            batch_id: Batch identifier
            edits: Optional narration edits keyed by item index; unknown indexes are ignored

        Returns:
            Batch id and item count

        Raises:
            JobNotFoundError: Unknown or expired batch
            BatchStateError: Batch was not created by preview or is already confirmed
        """
        with self._confirm_lock:
            job = self._get_job(batch_id)
            if not job.preview_only:
                raise BatchStateError(f"Batch '{batch_id}' is already rendering or finished")

            items_by_index = {item.index: item for item in job.items}
            for edit in edits or []:
                item = items_by_index.get(edit.index)
                if item is not None:
                    self._apply_edit(item, edit)

            job.preview_only = False

        self.logger.info(f"Narration confirmed for batch {batch_id}, starting render")
        self._start_processing(batch_id)
        return BatchAccepted(batch_id=batch_id, total=len(job.items))

    def get_status(self, batch_id: str) -> BatchStatus:
        """
        Report batch progress.

        Raises:
            JobNotFoundError: Unknown or expired batch
        """
        job = self._get_job(batch_id)
        items = [
            ItemStatusView(
                index=item.index,
                recipient_name=item.recipient.name,
                relation=item.recipient.relation,
                theme=item.theme,
                theme_name=theme_display_name(item.theme) if item.theme else None,
                status=item.status,
                output_reference=item.output_reference,
                filename=item.filename,
                error=item.error,
                narration=narration_view(item.narration) if item.narration else None,
            )
            for item in list(job.items)
        ]
        return BatchStatus(
            batch_id=job.id,
            status=job.status,
            total=len(items),
            completed=sum(1 for item in items if item.status.is_terminal),
            items=items,
        )

    def build_archive(self, batch_id: str) -> Path:
        """
        Zip the finished videos of a batch.

        Args:
            batch_id: Batch identifier

        Returns:
            Path of the archive in the temp directory; the caller deletes it after sending

        Raises:
            JobNotFoundError: Unknown or expired batch
            NoFinishedVideosError: No item is done
        """
        job = self._get_job(batch_id)
        output_dir = Path(self.settings.output_dir)
        video_paths = [
            output_dir / item.filename
            for item in job.items
            if item.status == ItemStatus.DONE and item.filename and (output_dir / item.filename).exists()
        ]
        if not video_paths:
            raise NoFinishedVideosError(batch_id)

        temp_dir = Path(self.settings.temp_dir)
        temp_dir.mkdir(parents=True, exist_ok=True)
        archive_path = temp_dir / f"blessings_{batch_id}_{int(time.time() * 1000)}.zip"
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_STORED) as archive:
            for path in video_paths:
                archive.write(path, arcname=path.name)

        self.logger.info(f"Archived {len(video_paths)} videos for batch {batch_id}: {archive_path.name}")
        return archive_path

    def discard(self, batch_id: str) -> None:
        """
        Evict a batch explicitly and release its shared resources.

        Raises:
            JobNotFoundError: Unknown or expired batch
            BatchStateError: Batch is still rendering
        """
        job = self._get_job(batch_id)
        if not job.preview_only and not job.status.is_terminal:
            raise BatchStateError(f"Batch '{batch_id}' is still rendering")
        release_batch_resources(job, self.processor.voice_provider, self.logger)
        self.job_store.delete(batch_id)
        self.logger.info(f"Discarded batch {batch_id}")


def create_batch_service(
    settings: Settings, logger: Any, job_store: Optional[JobStore] = None, run_in_background: bool = True
) -> BatchService:
    """
    Wire a BatchService with the default providers for the given settings.

    Args:
        settings: Application settings
        logger: Logger instance
        job_store: Optional store (a fresh in-memory store if omitted)
        run_in_background: Process batches on worker threads

    Returns:
        BatchService
    """
    if job_store is None:
        job_store = InMemoryJobStore(logger)
    processor = BatchProcessor(
        settings,
        logger,
        job_store=job_store,
        narration_engine=NarrationEngine(settings, logger),
        voice_provider=get_voice_provider(settings, logger),
        media=MediaToolkit(settings, logger),
        renderer=VideoRenderer(settings, logger),
    )
    return BatchService(settings, logger, job_store, processor, run_in_background=run_in_background)
