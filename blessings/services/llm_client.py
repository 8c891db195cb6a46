"""LLM Client - centralized OpenAI client for narration generation."""

import base64
from typing import Any, Optional

from blessings.core.config import Settings
from blessings.core.exceptions import ProviderUnconfiguredError


class LLMClient:
    """Centralized LLM client for OpenAI operations."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize LLM client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._client = None

    def is_configured(self) -> bool:
        return bool(self.settings.openai_api_key)

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            if not self.is_configured():
                raise ProviderUnconfiguredError("OpenAI", "set OPENAI_API_KEY")

            from openai import OpenAI

            self._client = OpenAI(api_key=self.settings.openai_api_key)

        return self._client

    def generate(self, prompt: str, system_prompt: str, audio_bytes: Optional[bytes] = None) -> str:
        """
        Request a JSON completion.

        Args:
            prompt: User prompt
            system_prompt: System prompt
            audio_bytes: Optional WAV audio attached as listening context

        Returns:
            Raw text content of the first choice

        Raises:
            ProviderUnconfiguredError: If no API key is set
            ValueError: If the response has no content
        """
        client = self._get_client()

        if audio_bytes:
            user_content: Any = [
                {
                    "type": "input_audio",
                    "input_audio": {"data": base64.b64encode(audio_bytes).decode("ascii"), "format": "wav"},
                },
                {"type": "text", "text": prompt},
            ]
        else:
            user_content = prompt

        request: dict[str, Any] = {
            "model": self.settings.openai_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": self.settings.llm_temperature,
            "max_tokens": self.settings.llm_max_tokens,
        }
        # JSON mode is not accepted together with audio input.
        if not audio_bytes:
            request["response_format"] = {"type": "json_object"}

        self.logger.debug(
            f"LLM request: model={self.settings.openai_model}, audio={'yes' if audio_bytes else 'no'}"
        )
        response = client.chat.completions.create(**request)

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("LLM returned empty content")
        return content
