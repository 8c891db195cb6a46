"""Error Handler - formats error messages for logs and per-item status."""

import subprocess
from typing import Optional


def truncate_error_message(error: BaseException, max_length: int = 200) -> str:
    """
    Build the short error message stored on a failed item.

    Process failures prefer captured stderr over the exception text.

    Args:
        error: The exception that failed the item
        max_length: Maximum message length

    Returns:
        Non-empty message of at most max_length characters
    """
    stderr = getattr(error, "stderr", None)
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    message = stderr.strip() if isinstance(stderr, str) and stderr.strip() else str(error).strip()
    if not message:
        message = type(error).__name__
    return message[:max_length]


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a readable error message for logs.

    Args:
        operation: What operation was being performed (e.g., "Rendering video")
        error: The exception that occurred
        context: Additional context (e.g., {"batch_id": "abc", "recipient": "张三"})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_fallback_suggestion(service: str, error: Exception) -> Optional[str]:
    """
    Get a suggestion for how a service failure degrades the output.

    Args:
        service: Service name ("TTS", "LLM", "Render")
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()

    if service == "TTS":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check ELEVENLABS_API_KEY in .env file. Videos will be rendered without voiceover."
        elif "rate limit" in error_msg or "429" in error_msg:
            return "Rate limit exceeded. This segment is rendered without voiceover."
        else:
            return "Speech synthesis failed. This segment is rendered without voiceover."

    elif service == "LLM":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check OPENAI_API_KEY in .env file. Falling back to templates."
        elif "rate limit" in error_msg or "429" in error_msg:
            return "OpenAI rate limit exceeded. Falling back to templates."
        else:
            return "Narration generation failed. Falling back to templates."

    elif service == "Render":
        if isinstance(error, subprocess.TimeoutExpired) or "timed out" in error_msg:
            return "Renderer timed out. Check RENDER_TIMEOUT_SECONDS or the renderer workload."
        return "Renderer failed. Check the renderer installation and its stderr."

    return None
