"""Voice provider abstraction: voice cloning and speech synthesis."""

import time
from pathlib import Path
from typing import Any, Optional, Union

import requests

from blessings.core.config import Settings
from blessings.core.exceptions import (
    EmptyInputError,
    ProviderUnconfiguredError,
    SynthesisFailedError,
    VoiceUploadError,
)
from blessings.utils.text_utils import sanitize_tts_text

MAX_RETRY_DELAY_SECONDS = 9.0


def retry_delay(attempt: int) -> float:
    """Delay in seconds after a failed attempt (0-based): 1s, 3s, 9s, capped at 9s."""
    return min(MAX_RETRY_DELAY_SECONDS, 3.0**attempt)


class VoiceProvider:
    """Base class for voice cloning / speech synthesis providers."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize voice provider.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def is_configured(self) -> bool:
        return False

    def upload_voice(self, audio_file: Union[str, Path]) -> str:
        """
        Create a cloned voice from reference audio.

        Args:
            audio_file: Reference audio file

        Returns:
            Provider voice identifier

        Raises:
            ProviderUnconfiguredError: If credentials are missing
            FileNotFoundError: If audio_file does not exist
            VoiceUploadError: If the provider rejects the upload
        """
        raise NotImplementedError("Subclass must implement upload_voice()")

    def delete_voice(self, voice_id: str) -> None:
        """Delete a cloned voice. Best-effort: failures are logged, never raised."""
        raise NotImplementedError("Subclass must implement delete_voice()")

    def generate_speech(self, text: str, voice_id: str, joyful: Optional[int] = None) -> bytes:
        """
        Synthesize speech with a cloned voice.

        Args:
            text: Text to speak
            voice_id: Cloned voice identifier
            joyful: Optional emotion level 0-5

        Returns:
            Encoded audio bytes (MP3)

        Raises:
            EmptyInputError: If the sanitized text is empty
            SynthesisFailedError: If every attempt failed
        """
        raise NotImplementedError("Subclass must implement generate_speech()")


class ElevenLabsVoiceProvider(VoiceProvider):
    """ElevenLabs instant voice cloning and text-to-speech."""

    def __init__(self, settings: Settings, logger: Any, session: Optional[requests.Session] = None):
        """
        Initialize ElevenLabs provider.

        Args:
            settings: Application settings
            logger: Logger instance
            session: Optional requests session (shared connection pool)
        """
        super().__init__(settings, logger)
        self.api_key = settings.elevenlabs_api_key
        self.base_url = settings.elevenlabs_base_url.rstrip("/")
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {"xi-api-key": self.api_key or ""}

    def upload_voice(self, audio_file: Union[str, Path]) -> str:
        if not self.is_configured():
            raise ProviderUnconfiguredError("ElevenLabs", "set ELEVENLABS_API_KEY")

        audio_path = Path(audio_file)
        if not audio_path.exists():
            raise FileNotFoundError(f"Reference audio not found: {audio_path}")

        self.logger.info(f"Uploading reference audio for voice cloning: {audio_path.name}")
        url = f"{self.base_url}/voices/add"
        try:
            with open(audio_path, "rb") as f:
                response = self.session.post(
                    url,
                    headers=self._headers(),
                    data={"name": f"blessing_{audio_path.stem}_{int(time.time())}"},
                    files={"files": (audio_path.name, f, "audio/wav")},
                    timeout=self.settings.tts_request_timeout,
                )
        except requests.exceptions.RequestException as e:
            raise VoiceUploadError(str(audio_path), f"network error: {e}") from e

        if not response.ok:
            raise VoiceUploadError(str(audio_path), f"status {response.status_code}: {response.text[:200]}")

        try:
            voice_id = response.json().get("voice_id")
        except ValueError as e:
            raise VoiceUploadError(str(audio_path), "response is not JSON") from e
        if not voice_id:
            raise VoiceUploadError(str(audio_path), "response has no voice_id")

        self.logger.info(f"Voice clone created: {voice_id}")
        return voice_id

    def delete_voice(self, voice_id: str) -> None:
        if not voice_id or not self.is_configured():
            return
        try:
            response = self.session.delete(
                f"{self.base_url}/voices/{voice_id}",
                headers=self._headers(),
                timeout=self.settings.tts_request_timeout,
            )
            if response.ok:
                self.logger.info(f"Voice clone deleted: {voice_id}")
            else:
                self.logger.warning(f"Failed to delete voice {voice_id}: status {response.status_code}")
        except requests.exceptions.RequestException as e:
            self.logger.warning(f"Failed to delete voice {voice_id}: {e}")

    def generate_speech(self, text: str, voice_id: str, joyful: Optional[int] = None) -> bytes:
        clean_text = sanitize_tts_text(text, self.settings.tts_max_text_length)
        if not clean_text:
            raise EmptyInputError("Text is empty after sanitizing")
        if not self.is_configured():
            raise ProviderUnconfiguredError("ElevenLabs", "set ELEVENLABS_API_KEY")

        url = f"{self.base_url}/text-to-speech/{voice_id}"
        headers = {**self._headers(), "Accept": "audio/mpeg", "Content-Type": "application/json"}
        voice_settings: dict[str, Any] = {"stability": 0.5, "similarity_boost": 0.75}
        if joyful is not None:
            voice_settings["style"] = max(0, min(5, joyful)) / 5
        payload = {
            "text": clean_text,
            "model_id": self.settings.elevenlabs_model_id,
            "voice_settings": voice_settings,
        }

        attempts = max(1, self.settings.tts_max_attempts)
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                response = self.session.post(
                    url, json=payload, headers=headers, timeout=self.settings.tts_request_timeout
                )
                if response.status_code != 200:
                    raise requests.exceptions.HTTPError(
                        f"ElevenLabs returned status {response.status_code}: {response.text[:200]}"
                    )
                if not response.content:
                    raise ValueError("ElevenLabs returned empty audio")
                self.logger.debug(f"Synthesized {len(clean_text)} chars ({len(response.content)} bytes)")
                return response.content
            except (requests.exceptions.RequestException, ValueError) as e:
                last_error = e
                self.logger.warning(f"Speech synthesis attempt {attempt + 1}/{attempts} failed: {e}")
                if attempt < attempts - 1:
                    time.sleep(retry_delay(attempt))

        raise SynthesisFailedError(attempts, str(last_error)) from last_error


def get_voice_provider(settings: Settings, logger: Any) -> VoiceProvider:
    """
    Get the voice provider for the current settings.

    The returned provider may be unconfigured; callers check is_configured()
    and render without voiceover when it is not.

    Args:
        settings: Application settings
        logger: Logger instance

    Returns:
        VoiceProvider instance
    """
    provider = ElevenLabsVoiceProvider(settings, logger)
    if provider.is_configured():
        logger.info("Using ElevenLabs for voice cloning")
    else:
        logger.info("No voice provider configured, videos are rendered without voiceover")
    return provider
