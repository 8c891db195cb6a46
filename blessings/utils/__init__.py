"""Utility functions for the blessing video batch generator."""

from blessings.utils.error_handler import format_error_message, truncate_error_message
from blessings.utils.io_utils import build_output_filename, generate_id, remove_file, safe_recipient_name
from blessings.utils.text_utils import round_half_up, sanitize_tts_text

__all__ = [
    "build_output_filename",
    "format_error_message",
    "generate_id",
    "remove_file",
    "round_half_up",
    "safe_recipient_name",
    "sanitize_tts_text",
    "truncate_error_message",
]
