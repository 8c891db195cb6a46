"""Release of batch-scoped shared resources (temp audio files, voice clone)."""

from typing import Any, Optional

from blessings.models.schemas import BatchJob
from blessings.services.voice_provider import VoiceProvider
from blessings.utils.io_utils import remove_file


def release_batch_resources(job: BatchJob, voice_provider: Optional[VoiceProvider], logger: Any) -> None:
    """
    Delete a batch's temp audio files and cloned voice, then clear the references.

    Safe to call more than once: cleared references are skipped, missing
    files are tolerated and provider errors are only logged.

    Args:
        job: Batch whose resources are released
        voice_provider: Provider that owns the voice clone
        logger: Logger instance
    """
    for attr in ("extracted_audio_path", "dedicated_audio_wav_path"):
        path = getattr(job, attr)
        if path:
            remove_file(path, logger)
            setattr(job, attr, None)

    voice_id = job.voice_clone_id
    if voice_id:
        job.voice_clone_id = None
        if voice_provider is not None:
            logger.info(f"Releasing voice clone {voice_id}")
            try:
                voice_provider.delete_voice(voice_id)
            except Exception as e:
                logger.warning(f"Voice clone {voice_id} was not deleted: {e}")
