"""Narration Engine - writes the personalized texts for one recipient."""

import json
import re
from pathlib import Path
from typing import Any, Optional, Union

from blessings.core.config import Settings
from blessings.core.exceptions import NarrationValidationError
from blessings.models.schemas import FestivalType, Narration, Recipient, RelationType, ThemeType
from blessings.services import festivals
from blessings.services.llm_client import LLMClient
from blessings.services.relation_classifier import classify_relation, seeded_pick, suggest_theme
from blessings.utils.error_handler import format_error_message, get_fallback_suggestion
from blessings.utils.text_utils import round_half_up

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?\s*```")

MAX_LLM_BLESSINGS = 6
MIN_LLM_BLESSINGS = 2


def extract_json(text: str) -> Any:
    """
    Parse JSON from an LLM response.

    Tries the raw text, then a fenced code block, then the span from the
    first "{" to the last "}".

    Args:
        text: Raw LLM output

    Returns:
        Parsed JSON value

    Raises:
        NarrationValidationError: If no candidate parses
    """
    try:
        return json.loads(text.strip())
    except ValueError:
        pass

    match = _CODE_FENCE.search(text)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except ValueError:
            pass

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        try:
            return json.loads(text[first : last + 1])
        except ValueError:
            pass

    raise NarrationValidationError("Could not parse JSON from LLM response")


def validate_llm_narration(data: Any) -> Narration:
    """
    Validate parsed LLM output and map it to a Narration.

    Args:
        data: Parsed JSON with keys opening, narration, blessings, openingText, theme, joyful

    Returns:
        Narration

    Raises:
        NarrationValidationError: If a required field is missing or malformed
    """
    if not isinstance(data, dict):
        raise NarrationValidationError("LLM response is not a JSON object")

    for key in ("opening", "narration", "openingText"):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise NarrationValidationError(f"LLM response is missing '{key}'")

    blessings = data.get("blessings")
    if not isinstance(blessings, list):
        raise NarrationValidationError("LLM response 'blessings' is not a list")
    blessings = [b.strip() for b in blessings if isinstance(b, str) and b.strip()]
    if len(blessings) < MIN_LLM_BLESSINGS:
        raise NarrationValidationError(f"LLM response needs at least {MIN_LLM_BLESSINGS} blessings")

    try:
        theme = ThemeType(data.get("theme"))
    except ValueError:
        theme = ThemeType.TRADITIONAL

    joyful = data.get("joyful")
    # bool is an int subclass
    if isinstance(joyful, (int, float)) and not isinstance(joyful, bool) and 0 <= joyful <= 5:
        joyful = round_half_up(joyful)
    else:
        joyful = 3

    return Narration(
        opening_text=data["openingText"].strip(),
        blessings=blessings[:MAX_LLM_BLESSINGS],
        tts_opening_text=data["opening"].strip(),
        tts_blessing_text=data["narration"].strip(),
        theme=theme,
        joyful=joyful,
    )


class NarrationEngine:
    """Produces the on-screen and spoken texts for each recipient."""

    def __init__(self, settings: Settings, logger: Any, llm_client: Optional[LLMClient] = None):
        """
        Initialize the narration engine.

        Args:
            settings: Application settings
            logger: Logger instance
            llm_client: Optional LLM client (created from settings if omitted)
        """
        self.settings = settings
        self.logger = logger
        self.llm_client = llm_client or LLMClient(settings, logger)

    def is_llm_configured(self) -> bool:
        return self.llm_client.is_configured()

    def generate(
        self,
        recipient: Recipient,
        sender_name: str,
        festival: FestivalType = FestivalType.SPRING,
        reference_audio: Optional[Union[str, Path]] = None,
    ) -> Narration:
        """
        Generate narration for a recipient.

        Uses the LLM when configured and falls back to templates on any
        failure, so this never raises for provider problems.

        Args:
            recipient: Recipient to write for
            sender_name: Sender name
            festival: Festival variant
            reference_audio: Optional WAV of the sender, attached as LLM context

        Returns:
            Narration
        """
        if self.is_llm_configured():
            try:
                self.logger.info(
                    f"Generating LLM narration for {recipient.name} ({festival.value})"
                    f"{' with audio context' if reference_audio else ''}"
                )
                narration = self._generate_with_llm(recipient, sender_name, festival, reference_audio)
                self.logger.info(
                    f"LLM narration ready for {recipient.name} "
                    f"(opening {len(narration.tts_opening_text)} chars, body {len(narration.tts_blessing_text)} chars, "
                    f"theme {narration.theme.value})"
                )
                return narration
            except Exception as e:
                self.logger.warning(
                    format_error_message(
                        "LLM narration", e, {"recipient": recipient.name}, get_fallback_suggestion("LLM", e)
                    )
                )

        self.logger.info(f"Using template narration for {recipient.name} ({festival.value})")
        return self.generate_from_template(recipient, sender_name, festival)

    def _read_reference_audio(self, reference_audio: Optional[Union[str, Path]]) -> Optional[bytes]:
        """Load reference audio if it exists and is small enough to attach."""
        if not reference_audio:
            return None
        audio_path = Path(reference_audio)
        if not audio_path.exists():
            return None
        try:
            audio_bytes = audio_path.read_bytes()
        except OSError as e:
            self.logger.warning(f"Could not read reference audio {audio_path}: {e}")
            return None
        size_mb = len(audio_bytes) / (1024 * 1024)
        if size_mb >= self.settings.max_audio_context_mb:
            self.logger.warning(f"Reference audio too large ({size_mb:.1f}MB), not attaching")
            return None
        self.logger.debug(f"Attaching reference audio ({size_mb:.1f}MB)")
        return audio_bytes

    def _generate_with_llm(
        self,
        recipient: Recipient,
        sender_name: str,
        festival: FestivalType,
        reference_audio: Optional[Union[str, Path]],
    ) -> Narration:
        audio_bytes = self._read_reference_audio(reference_audio)
        has_audio = bool(reference_audio) and Path(reference_audio).exists()
        prompt = festivals.build_user_prompt(
            recipient.name, recipient.relation, recipient.background, sender_name, festival, has_audio
        )
        system_prompt = festivals.SYSTEM_PROMPTS.get(festival, festivals.SYSTEM_PROMPTS[FestivalType.SPRING])
        content = self.llm_client.generate(prompt, system_prompt, audio_bytes=audio_bytes)
        return validate_llm_narration(extract_json(content))

    def generate_from_template(
        self, recipient: Recipient, sender_name: str, festival: FestivalType = FestivalType.SPRING
    ) -> Narration:
        """
        Build narration deterministically from templates.

        Every pick is seeded by the recipient's name and relation, so the
        same recipient always gets the same texts.

        Args:
            recipient: Recipient to write for
            sender_name: Sender name
            festival: Festival variant

        Returns:
            Narration
        """
        relation_type = classify_relation(recipient.relation)
        seed = f"{recipient.name}_{recipient.relation}"

        opening_text = seeded_pick(festivals.OPENING_TEXTS[festival][relation_type], seed)
        blessings = list(seeded_pick(festivals.BLESSING_SETS[festival][relation_type], seed + "_b"))

        openers = festivals.SPOKEN_OPENERS[festival]
        opener_pool = openers.get(relation_type, openers[RelationType.GENERAL])
        opener = seeded_pick(opener_pool, seed + festivals.OPENER_SEED_SUFFIX[festival])
        tts_opening_text = opener.format(name=recipient.name)

        sentences = []
        background = recipient.background.strip()
        if background:
            intros = festivals.BACKGROUND_INTROS[festival]
            intro_key = relation_type.value if relation_type.value in intros else "general"
            sentences.append(seeded_pick(intros[intro_key], seed + "_bg").format(bg=recipient.background))
        sentences.extend(festivals.spoken_blessing_sentences(festival, relation_type, blessings, sender_name))
        tts_blessing_text = "。".join(sentences) + "！"

        return Narration(
            opening_text=opening_text,
            blessings=blessings,
            tts_opening_text=tts_opening_text,
            tts_blessing_text=tts_blessing_text,
            theme=suggest_theme(recipient.relation, recipient.background),
            joyful=festivals.default_joyful(festival, relation_type),
        )
