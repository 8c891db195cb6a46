"""Scene timing: frame counts derived from measured speech durations."""

from typing import Optional

from blessings.models.schemas import SceneTiming
from blessings.utils.text_utils import round_half_up

FPS = 30
OUTRO_FRAMES = 90

DEFAULT_SOURCE_DURATION_SEC = 5.0

DEFAULT_SCENE1_FRAMES = 150
MIN_SCENE1_FRAMES = 120
SCENE1_PADDING_FRAMES = 30

DEFAULT_SCENE3_FRAMES = 180
MIN_SCENE3_FRAMES = 150
SCENE3_PADDING_FRAMES = 45


def seconds_to_frames(seconds: float, fps: int = FPS) -> int:
    return round_half_up(seconds * fps)


def compute_scene_timing(
    *,
    source_video_duration_sec: Optional[float] = None,
    opening_duration_sec: Optional[float] = None,
    blessing_duration_sec: Optional[float] = None,
) -> SceneTiming:
    """
    Compute frame counts for the opening, source video and blessing scenes.

    Args:
        source_video_duration_sec: Source video duration, None if unknown (5s assumed)
        opening_duration_sec: Spoken opening duration, None if there is no opening audio
        blessing_duration_sec: Spoken blessing duration, None if there is no blessing audio

    Returns:
        SceneTiming; the 90-frame outro is included in total_frames
    """
    source = DEFAULT_SOURCE_DURATION_SEC if source_video_duration_sec is None else source_video_duration_sec
    scene2 = seconds_to_frames(source)

    if opening_duration_sec is not None:
        scene1 = max(seconds_to_frames(opening_duration_sec) + SCENE1_PADDING_FRAMES, MIN_SCENE1_FRAMES)
    else:
        scene1 = DEFAULT_SCENE1_FRAMES

    if blessing_duration_sec is not None:
        scene3 = max(seconds_to_frames(blessing_duration_sec) + SCENE3_PADDING_FRAMES, MIN_SCENE3_FRAMES)
    else:
        scene3 = DEFAULT_SCENE3_FRAMES

    return SceneTiming(scene1_frames=scene1, scene2_frames=scene2, scene3_frames=scene3, outro_frames=OUTRO_FRAMES)
