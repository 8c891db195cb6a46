"""Tests for Narration Engine."""

import json
from unittest.mock import MagicMock

import pytest

from blessings.core.exceptions import NarrationValidationError
from blessings.models.schemas import FestivalType, Narration, Recipient, RelationType, ThemeType
from blessings.services import festivals
from blessings.services.narration_engine import NarrationEngine, extract_json, validate_llm_narration


@pytest.fixture
def narration_engine(settings, logger):
    """Create NarrationEngine with the LLM unconfigured."""
    return NarrationEngine(settings, logger)


@pytest.fixture
def mock_llm():
    """Configured LLM client double."""
    llm = MagicMock()
    llm.is_configured.return_value = True
    return llm


@pytest.fixture
def llm_payload():
    return {
        "theme": "modern",
        "opening": "嘿李四，新年好啊，给你录了个东西！",
        "narration": "听说你升职了，太可以了，今年继续冲，小明给你拜年啦！",
        "blessings": ["升职加薪", "别秃头", "一起冲", "发大财"],
        "openingText": "兄弟冲",
        "joyful": 4,
    }


def test_template_is_deterministic(narration_engine):
    """Test that identical recipients produce identical narration."""
    recipient = Recipient(name="张三", relation="我妈", background="")
    first = narration_engine.generate(recipient, "小明")
    second = narration_engine.generate(recipient, "小明")
    assert first == second


def test_template_spring_elder(narration_engine):
    """Test elder narration for the spring festival."""
    recipient = Recipient(name="张三", relation="我妈", background="")
    narration = narration_engine.generate(recipient, "小明", FestivalType.SPRING)

    assert narration.opening_text in festivals.OPENING_TEXTS[FestivalType.SPRING][RelationType.ELDER]
    assert narration.blessings in festivals.BLESSING_SETS[FestivalType.SPRING][RelationType.ELDER]
    openers = [o.format(name="张三") for o in festivals.SPOKEN_OPENERS[FestivalType.SPRING][RelationType.ELDER]]
    assert narration.tts_opening_text in openers
    assert narration.tts_blessing_text.startswith("新的一年就希望您")
    assert narration.tts_blessing_text.endswith("小明给您拜年了！")
    assert narration.theme == ThemeType.TRADITIONAL
    assert narration.joyful == 3


def test_template_spring_friend_with_background(narration_engine):
    """Test that a background intro leads the spoken blessing."""
    recipient = Recipient(name="李四", relation="发小", background="刚升职")
    narration = narration_engine.generate(recipient, "小明", FestivalType.SPRING)

    intros = [i.format(bg="刚升职") for i in festivals.BACKGROUND_INTROS[FestivalType.SPRING]["friend"]]
    first_sentence = narration.tts_blessing_text.split("。")[0]
    assert first_sentence in intros
    assert "新的一年嘛，" in narration.tts_blessing_text
    assert narration.tts_blessing_text.endswith("小明给你拜年啦！")
    assert narration.joyful == 4


def test_template_spring_lover(narration_engine):
    """Test lover narration: only the first two blessings are spoken."""
    recipient = Recipient(name="小美", relation="老婆", background="")
    narration = narration_engine.generate(recipient, "小明", FestivalType.SPRING)

    head = "，".join(narration.blessings[:2])
    assert narration.tts_blessing_text == f"新的一年继续在一起，{head}。小明爱你，马年也要甜甜的！"
    assert narration.theme == ThemeType.CUTE
    assert narration.joyful == 4


def test_template_valentine_lover(narration_engine):
    """Test valentine lover narration."""
    recipient = Recipient(name="小美", relation="老婆", background="")
    narration = narration_engine.generate(recipient, "小明", FestivalType.VALENTINE)

    assert narration.opening_text in festivals.OPENING_TEXTS[FestivalType.VALENTINE][RelationType.LOVER]
    assert narration.tts_blessing_text.endswith("小明永远站你这边！")
    assert f"以后也要{narration.blessings[2]}" in narration.tts_blessing_text
    assert narration.joyful == 4


def test_template_valentine_general(narration_engine):
    """Test that unknown relations use the general pools."""
    recipient = Recipient(name="王五", relation="邻居", background="")
    narration = narration_engine.generate(recipient, "小明", FestivalType.VALENTINE)

    assert narration.opening_text in festivals.OPENING_TEXTS[FestivalType.VALENTINE][RelationType.GENERAL]
    assert narration.tts_blessing_text.endswith("小明祝你情人节快乐！")
    assert narration.joyful == 3


def test_template_valentine_elder_background_uses_general_intro(narration_engine):
    """Test that relations without their own intro pool fall back to 'general'."""
    recipient = Recipient(name="张三", relation="我妈", background="退休了")
    narration = narration_engine.generate(recipient, "小明", FestivalType.VALENTINE)

    intros = [i.format(bg="退休了") for i in festivals.BACKGROUND_INTROS[FestivalType.VALENTINE]["general"]]
    assert narration.tts_blessing_text.split("。")[0] in intros


def test_llm_narration_is_used_when_configured(settings, logger, mock_llm, llm_payload):
    """Test that a valid LLM response is mapped to Narration."""
    mock_llm.generate.return_value = json.dumps(llm_payload, ensure_ascii=False)
    engine = NarrationEngine(settings, logger, llm_client=mock_llm)

    narration = engine.generate(Recipient(name="李四", relation="发小"), "小明")

    assert narration.opening_text == "兄弟冲"
    assert narration.tts_opening_text == llm_payload["opening"]
    assert narration.tts_blessing_text == llm_payload["narration"]
    assert narration.blessings == llm_payload["blessings"]
    assert narration.theme == ThemeType.MODERN
    assert narration.joyful == 4

    prompt, system_prompt = mock_llm.generate.call_args.args
    assert "李四" in prompt and "发小" in prompt and "刚升职" not in prompt
    assert festivals.EMPTY_BACKGROUND in prompt
    assert system_prompt == festivals.SYSTEM_PROMPTS[FestivalType.SPRING]
    assert mock_llm.generate.call_args.kwargs["audio_bytes"] is None


def test_llm_failure_falls_back_to_template(settings, logger, mock_llm):
    """Test that any LLM error produces the template narration."""
    mock_llm.generate.side_effect = RuntimeError("connection reset")
    engine = NarrationEngine(settings, logger, llm_client=mock_llm)
    recipient = Recipient(name="张三", relation="我妈")

    narration = engine.generate(recipient, "小明")

    assert narration == engine.generate_from_template(recipient, "小明")


def test_llm_invalid_output_falls_back_to_template(settings, logger, mock_llm, llm_payload):
    """Test that a schema violation is not propagated."""
    llm_payload["blessings"] = ["只有一个"]
    mock_llm.generate.return_value = json.dumps(llm_payload, ensure_ascii=False)
    engine = NarrationEngine(settings, logger, llm_client=mock_llm)
    recipient = Recipient(name="李四", relation="发小")

    assert engine.generate(recipient, "小明") == engine.generate_from_template(recipient, "小明")


def test_reference_audio_is_attached(settings, logger, mock_llm, llm_payload, tmp_path):
    """Test that small reference audio is sent with the prompt."""
    audio = tmp_path / "ref.wav"
    audio.write_bytes(b"RIFF0000WAVEfmt ")
    mock_llm.generate.return_value = json.dumps(llm_payload, ensure_ascii=False)
    engine = NarrationEngine(settings, logger, llm_client=mock_llm)

    engine.generate(Recipient(name="李四", relation="发小"), "小明", reference_audio=audio)

    assert mock_llm.generate.call_args.kwargs["audio_bytes"] == b"RIFF0000WAVEfmt "
    assert festivals.AUDIO_HINT.strip() in mock_llm.generate.call_args.args[0]


def test_oversized_reference_audio_is_dropped(settings, logger, mock_llm, llm_payload, tmp_path):
    """Test that audio at or above the size limit is silently omitted."""
    audio = tmp_path / "ref.wav"
    audio.write_bytes(b"x" * 2048)
    small_limit = settings.model_copy(update={"max_audio_context_mb": 0.001})
    mock_llm.generate.return_value = json.dumps(llm_payload, ensure_ascii=False)
    engine = NarrationEngine(small_limit, logger, llm_client=mock_llm)

    narration = engine.generate(Recipient(name="李四", relation="发小"), "小明", reference_audio=audio)

    assert narration.opening_text == "兄弟冲"
    assert mock_llm.generate.call_args.kwargs["audio_bytes"] is None


def test_missing_reference_audio_is_ignored(settings, logger, mock_llm, llm_payload, tmp_path):
    """Test that a nonexistent audio path is not attached and not hinted."""
    mock_llm.generate.return_value = json.dumps(llm_payload, ensure_ascii=False)
    engine = NarrationEngine(settings, logger, llm_client=mock_llm)

    engine.generate(Recipient(name="李四", relation="发小"), "小明", reference_audio=tmp_path / "missing.wav")

    assert mock_llm.generate.call_args.kwargs["audio_bytes"] is None
    assert festivals.AUDIO_HINT.strip() not in mock_llm.generate.call_args.args[0]


def test_extract_json_variants():
    """Test raw, fenced and embedded JSON."""
    assert extract_json('{"a": 1}') == {"a": 1}
    assert extract_json('Here you go:\n```json\n{"a": 2}\n```') == {"a": 2}
    assert extract_json('```\n{"a": 3}\n```') == {"a": 3}
    assert extract_json('Sure! {"a": 4} hope this helps') == {"a": 4}


def test_extract_json_failure():
    """Test that unparseable text raises a validation error."""
    with pytest.raises(NarrationValidationError):
        extract_json("no json here")


def test_validate_corrects_theme_and_joyful(llm_payload):
    """Test safe defaults for invalid theme and emotion values."""
    llm_payload["theme"] = "neon"
    llm_payload["joyful"] = 9
    narration = validate_llm_narration(llm_payload)
    assert narration.theme == ThemeType.TRADITIONAL
    assert narration.joyful == 3


@pytest.mark.parametrize("joyful,expected", [(True, 3), ("4", 3), (None, 3), (-1, 3), (2.5, 3), (4.5, 5), (0, 0), (5, 5)])
def test_validate_joyful_values(llm_payload, joyful, expected):
    """Test joyful: booleans and non-numbers rejected, halves rounded up."""
    llm_payload["joyful"] = joyful
    assert validate_llm_narration(llm_payload).joyful == expected


def test_validate_truncates_blessings(llm_payload):
    """Test that at most six blessings are kept."""
    llm_payload["blessings"] = [f"祝福{i}" for i in range(8)]
    assert len(validate_llm_narration(llm_payload).blessings) == 6


@pytest.mark.parametrize("missing", ["opening", "narration", "openingText"])
def test_validate_requires_text_fields(llm_payload, missing):
    """Test that required text fields must be non-empty strings."""
    llm_payload[missing] = ""
    with pytest.raises(NarrationValidationError):
        validate_llm_narration(llm_payload)


def test_validate_returns_narration(llm_payload):
    assert isinstance(validate_llm_narration(llm_payload), Narration)
