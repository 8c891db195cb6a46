"""Pydantic models and schemas for the batch generation pipeline."""

import time
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blessings.core.exceptions import InvalidTransitionError


# ============================================================================
# Enums
# ============================================================================


class ThemeType(str, Enum):
    """Visual theme of a rendered video."""

    TRADITIONAL = "traditional"
    MODERN = "modern"
    CUTE = "cute"
    ELEGANT = "elegant"


class FestivalType(str, Enum):
    """Festival variant that selects prompts and templates."""

    SPRING = "spring"
    VALENTINE = "valentine"


class RelationType(str, Enum):
    """Relation category derived from the free-text relation."""

    ELDER = "elder"
    FRIEND = "friend"
    COLLEAGUE = "colleague"
    LOVER = "lover"
    JUNIOR = "junior"
    TEACHER = "teacher"
    CLIENT = "client"
    GENERAL = "general"


class ItemStatus(str, Enum):
    """Per-recipient status. Transitions only move forward."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.DONE, ItemStatus.ERROR)


class JobStatus(str, Enum):
    """Batch status."""

    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.ERROR)


_ITEM_ORDER = {
    ItemStatus.PENDING: 0,
    ItemStatus.PROCESSING: 1,
    ItemStatus.DONE: 2,
    ItemStatus.ERROR: 2,
}


# ============================================================================
# Recipient & Narration
# ============================================================================


class Recipient(BaseModel):
    """A person who receives a personalized video."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=20, description="Recipient name")
    relation: str = Field(..., min_length=1, max_length=50, description="Relation to the sender, free text")
    background: str = Field(default="", max_length=200, description="Recent news or background, free text")


class Narration(BaseModel):
    """Personalized text bundle for one recipient."""

    opening_text: str = Field(..., description="On-screen title of the opening scene")
    blessings: list[str] = Field(..., description="On-screen blessing phrases of the body scene")
    tts_opening_text: str = Field(..., description="Spoken opening line")
    tts_blessing_text: str = Field(..., description="Spoken body blessing")
    theme: ThemeType = Field(default=ThemeType.TRADITIONAL, description="Visual theme")
    joyful: int = Field(default=3, ge=0, le=5, description="Emotion level for speech, 0 (calm) to 5 (ecstatic)")


class NarrationEdit(BaseModel):
    """Caller edits applied to a previewed narration before rendering."""

    index: int = Field(..., ge=0, description="Item index the edit applies to")
    opening_text: Optional[str] = Field(default=None, max_length=50)
    tts_opening_text: Optional[str] = Field(default=None, max_length=200)
    tts_blessing_text: Optional[str] = Field(default=None, max_length=500)
    blessings: Optional[list[Annotated[str, Field(max_length=20)]]] = Field(default=None, max_length=8)
    joyful: Optional[int] = Field(default=None, ge=0, le=5)
    theme: Optional[ThemeType] = None


# ============================================================================
# Batch State
# ============================================================================


class BatchItem(BaseModel):
    """The per-recipient unit of work within a batch."""

    index: int = Field(..., ge=0, description="Stable position within the batch")
    recipient: Recipient
    status: ItemStatus = Field(default=ItemStatus.PENDING)
    narration: Optional[Narration] = None
    theme: Optional[ThemeType] = None
    output_reference: Optional[str] = Field(default=None, description="Public reference of the rendered video")
    filename: Optional[str] = None
    error: Optional[str] = None

    def _advance(self, status: ItemStatus) -> None:
        if self.status.is_terminal or _ITEM_ORDER[status] <= _ITEM_ORDER[self.status]:
            raise InvalidTransitionError(
                f"Item {self.index} cannot move from {self.status.value} to {status.value}"
            )
        self.status = status

    def attach_narration(self, narration: Narration) -> None:
        """Attach or replace narration; only allowed before processing starts."""
        if self.status not in (ItemStatus.PENDING, ItemStatus.PROCESSING):
            raise InvalidTransitionError(f"Item {self.index} is {self.status.value}; narration is frozen")
        self.narration = narration
        self.theme = narration.theme

    def mark_processing(self) -> None:
        self._advance(ItemStatus.PROCESSING)

    def mark_done(self, output_reference: str, filename: str) -> None:
        if not output_reference or not filename:
            raise InvalidTransitionError(f"Item {self.index} needs an output reference and filename to finish")
        self._advance(ItemStatus.DONE)
        self.output_reference = output_reference
        self.filename = filename

    def mark_error(self, message: str) -> None:
        if not message:
            raise InvalidTransitionError(f"Item {self.index} needs an error message")
        self._advance(ItemStatus.ERROR)
        self.error = message


class BatchJob(BaseModel):
    """One generation request: a sender, a source video and its recipients."""

    id: str
    sender_name: str
    source_video_ref: str = Field(..., description="Source video, relative to the public directory")
    dedicated_audio_ref: Optional[str] = Field(default=None, description="Dedicated voice recording, relative to the public directory")
    festival: FestivalType = FestivalType.SPRING
    extracted_audio_path: Optional[str] = Field(default=None, description="Temp WAV extracted from the source video")
    dedicated_audio_wav_path: Optional[str] = Field(default=None, description="Temp WAV converted from the dedicated recording")
    voice_clone_id: Optional[str] = None
    source_video_duration_sec: Optional[float] = None
    items: list[BatchItem] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time, description="Creation time, epoch seconds")
    preview_only: bool = False
    status: JobStatus = JobStatus.PROCESSING

    @property
    def completed_count(self) -> int:
        return sum(1 for item in self.items if item.status.is_terminal)

    @property
    def done_count(self) -> int:
        return sum(1 for item in self.items if item.status == ItemStatus.DONE)

    def finalize(self) -> JobStatus:
        """Set the terminal job status from item outcomes."""
        if any(not item.status.is_terminal for item in self.items):
            raise InvalidTransitionError(f"Batch {self.id} still has unfinished items")
        all_failed = all(item.status == ItemStatus.ERROR for item in self.items)
        self.status = JobStatus.ERROR if all_failed else JobStatus.DONE
        return self.status


# ============================================================================
# Timing & Render Input
# ============================================================================


class SceneTiming(BaseModel):
    """Frame counts for the timed scenes of one video."""

    scene1_frames: int
    scene2_frames: int
    scene3_frames: int
    outro_frames: int = 90

    @property
    def total_frames(self) -> int:
        return self.scene1_frames + self.scene2_frames + self.scene3_frames + self.outro_frames


class SpeechSegment(BaseModel):
    """A synthesized speech file for one scene."""

    path: Path
    reference: str = Field(..., description="Reference relative to the public directory")
    duration_sec: float


class RenderProps(BaseModel):
    """Input payload of the external renderer, serialized in camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    sender_name: str = Field(..., alias="senderName")
    recipient_name: str = Field(..., alias="recipientName")
    opening_text: str = Field(..., alias="openingText")
    blessings: list[str]
    video_file: str = Field(..., alias="videoFile")
    tts_opening_text: str = Field(..., alias="ttsOpeningText")
    theme: ThemeType
    festival: FestivalType
    scene1_frames: int = Field(..., alias="scene1Frames")
    scene2_frames: int = Field(..., alias="scene2Frames")
    scene3_frames: int = Field(..., alias="scene3Frames")
    tts_opening_audio_file: Optional[str] = Field(default=None, alias="ttsOpeningAudioFile")
    tts_blessing_audio_file: Optional[str] = Field(default=None, alias="ttsBlessingAudioFile")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# API Request/Response Models
# ============================================================================


class BatchRequest(BaseModel):
    """Validated input for creating a batch."""

    sender_name: str = Field(..., min_length=1, max_length=20)
    recipients: list[Recipient] = Field(..., min_length=1, max_length=50)
    festival: FestivalType = FestivalType.SPRING
    video_ref: str = Field(..., min_length=1, description="Uploaded source video, relative to the public directory")
    audio_ref: Optional[str] = Field(default=None, description="Uploaded dedicated voice recording, relative to the public directory")

    @field_validator("sender_name")
    @classmethod
    def strip_sender(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("sender_name cannot be blank")
        return value


class NarrationView(BaseModel):
    """Narration as shown to the caller."""

    opening_text: str
    blessings: list[str]
    tts_opening_text: str
    tts_blessing_text: str
    theme: ThemeType
    theme_name: str
    joyful: int


class PreviewItem(BaseModel):
    index: int
    recipient_name: str
    relation: str
    background: str
    narration: NarrationView


class BatchPreviewResult(BaseModel):
    batch_id: str
    total: int
    items: list[PreviewItem]


class BatchAccepted(BaseModel):
    batch_id: str
    total: int


class ConfirmRequest(BaseModel):
    narrations: Optional[list[NarrationEdit]] = None


class ItemStatusView(BaseModel):
    index: int
    recipient_name: str
    relation: str
    theme: Optional[ThemeType] = None
    theme_name: Optional[str] = None
    status: ItemStatus
    output_reference: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None
    narration: Optional[NarrationView] = None


class BatchStatus(BaseModel):
    batch_id: str
    status: JobStatus
    total: int
    completed: int
    items: list[ItemStatusView]
