"""Escaping of chat markdown."""

FORMATTING_CHARS = r"\/*_-`#@<>.~|:[]()"


def escape_markdown(text: str) -> str:
    """Backslash-escape every character that could start markdown formatting."""
    return "".join("\\" + char if char in FORMATTING_CHARS else char for char in text)