"""
Text Processing Utilities

Helpers shared by the post, comment and message services and by the
templates:
1. clean_content: Trim user-submitted text and detect empty submissions
2. format_timestamp: Render a creation time for display
"""

from datetime import datetime


def clean_content(content: str | None) -> str | None:
    """
    Trim surrounding whitespace from submitted text.

    Args:
        content: Raw form value (may be None when the field is missing)

    Returns:
        The trimmed text, or None if nothing is left after trimming

    Examples:
        >>> clean_content("  hello ")
        'hello'
        >>> clean_content("   ") is None
        True
    """
    if content is None:
        return None
    content = content.strip()
    return content or None


def format_timestamp(value: datetime | None) -> str:
    """Format a timestamp as "YYYY-MM-DD HH:MM" for templates."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")
