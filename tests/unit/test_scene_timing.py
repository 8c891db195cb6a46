"""Tests for scene timing."""

import pytest

from blessings.services.scene_timing import compute_scene_timing, seconds_to_frames


def test_defaults_without_audio():
    """Test default frame counts when no speech or duration is known."""
    timing = compute_scene_timing()
    assert (timing.scene1_frames, timing.scene2_frames, timing.scene3_frames) == (150, 150, 180)
    assert timing.outro_frames == 90
    assert timing.total_frames == 570


@pytest.mark.parametrize("opening,expected", [(2.0, 120), (3.0, 120), (3.5, 135), (5.0, 180)])
def test_opening_scene(opening, expected):
    """Test opening frames: speech plus padding, with a minimum."""
    assert compute_scene_timing(opening_duration_sec=opening).scene1_frames == expected


@pytest.mark.parametrize("blessing,expected", [(3.0, 150), (3.5, 150), (5.0, 195), (10.0, 345)])
def test_blessing_scene(blessing, expected):
    """Test blessing frames: speech plus padding, with a minimum."""
    assert compute_scene_timing(blessing_duration_sec=blessing).scene3_frames == expected


def test_source_scene_rounds_half_up():
    assert compute_scene_timing(source_video_duration_sec=7.25).scene2_frames == 218


def test_zero_source_duration_is_kept():
    """Test that a measured zero duration is not replaced by the default."""
    assert compute_scene_timing(source_video_duration_sec=0.0).scene2_frames == 0


def test_longer_speech_never_shortens_scenes():
    """Test that frame counts are monotonic in speech duration."""
    durations = [i / 10 for i in range(0, 200)]
    scene1 = [compute_scene_timing(opening_duration_sec=d).scene1_frames for d in durations]
    scene3 = [compute_scene_timing(blessing_duration_sec=d).scene3_frames for d in durations]
    assert scene1 == sorted(scene1)
    assert scene3 == sorted(scene3)


def test_seconds_to_frames():
    assert seconds_to_frames(1.0) == 30
    assert seconds_to_frames(0.05) == 2


def test_durations_are_keyword_only():
    with pytest.raises(TypeError):
        compute_scene_timing(5.0, 2.0, 3.0)

    timing = compute_scene_timing(source_video_duration_sec=4.0, opening_duration_sec=4.0, blessing_duration_sec=4.0)
    assert (timing.scene1_frames, timing.scene2_frames, timing.scene3_frames) == (150, 120, 165)
