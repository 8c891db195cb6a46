"""Application configuration using pydantic-settings."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    Missing provider credentials are a valid state: the matching capability
    is simply skipped (template narration, silent videos).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Blessing Video Batch Generator", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # ========================================================================
    # LLM Settings
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key (enables AI narration)")
    openai_model: str = Field(
        default="gpt-4o-audio-preview",
        description="Model used for narration; must accept audio input when reference audio is attached",
    )
    llm_temperature: float = Field(default=0.92, description="Sampling temperature for narration")
    llm_max_tokens: int = Field(default=1024, description="Maximum output tokens for narration")
    max_audio_context_mb: float = Field(
        default=18.0, description="Reference audio at or above this size is not attached to the LLM request"
    )

    # ========================================================================
    # Voice Cloning / TTS Settings
    # ========================================================================
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key (enables voice cloning)")
    elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1", description="ElevenLabs API base URL")
    elevenlabs_model_id: str = Field(default="eleven_multilingual_v2", description="ElevenLabs synthesis model")
    tts_max_attempts: int = Field(default=3, description="Speech synthesis attempts before giving up")
    tts_max_text_length: int = Field(default=10000, description="Hard cap on characters sent for synthesis")
    tts_request_timeout: float = Field(default=60.0, description="HTTP timeout for TTS requests in seconds")

    # ========================================================================
    # Media Tools
    # ========================================================================
    ffprobe_binary: str = Field(default="ffprobe", description="Duration probe executable")
    ffmpeg_binary: str = Field(default="ffmpeg", description="Transcoder executable")
    probe_timeout_seconds: float = Field(default=10.0, description="Timeout for duration probing")
    extract_timeout_seconds: float = Field(default=30.0, description="Timeout for audio extraction")

    # ========================================================================
    # Renderer
    # ========================================================================
    renderer_command: str = Field(default="npx remotion render", description="Renderer command prefix")
    renderer_composition: str = Field(default="SpringFestivalVideo", description="Composition id to render")
    renderer_workdir: Optional[str] = Field(default=None, description="Working directory for the renderer process")
    render_timeout_seconds: float = Field(default=600.0, description="Timeout for a single render in seconds")

    # ========================================================================
    # Storage Paths
    # ========================================================================
    public_dir: str = Field(default="public", description="Root that video/audio references are relative to")
    uploads_dir: str = Field(default="public/uploads", description="Directory for uploads and synthesized speech")
    output_dir: str = Field(default="out", description="Directory for rendered videos")
    temp_dir: str = Field(default="tmp", description="Directory for temporary audio, props and archives")

    # ========================================================================
    # Batch Lifecycle
    # ========================================================================
    job_expiry_seconds: float = Field(default=3600.0, description="Jobs older than this are evicted")
    job_cleanup_interval_seconds: float = Field(default=600.0, description="Expiry sweep interval")
    error_message_max_length: int = Field(default=200, description="Per-item error messages are cut to this length")

    def ensure_directories(self) -> None:
        """Create the working directories if they do not exist yet."""
        for directory in (self.public_dir, self.uploads_dir, self.output_dir, self.temp_dir):
            Path(directory).mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
