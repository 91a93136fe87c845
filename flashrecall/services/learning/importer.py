"""
Anki Text Importer

Parses Anki's "Notes in Plain Text" export into front/back pairs.

Format:
    #separator:tab
    #html:false
    front<TAB>extra<TAB>back ...

The `#separator:` header selects the field separator (tab, comma,
semicolon, space, pipe, colon, or a quoted literal such as `'/'`).
Any other header value leaves the current separator unchanged.
Other `#` header lines and blank lines are skipped.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "\t"
SEPARATOR_HEADER = "#separator:"

_NAMED_SEPARATORS = {
    "tab": "\t",
    "comma": ",",
    "semicolon": ";",
    "space": " ",
    "pipe": "|",
    "colon": ":",
}


def _parse_separator(value: str, current: str) -> str:
    """Resolve the value of a `#separator:` header."""
    for name, separator in _NAMED_SEPARATORS.items():
        if value.startswith(name):
            return separator
    if value.startswith("'"):
        return value[1] if len(value) > 1 else DEFAULT_SEPARATOR
    return current


def parse_anki_text(text: str, front_idx: int, back_idx: int) -> dict[str, str]:
    """
    Extract front/back pairs from an Anki plain-text export.

    Args:
        text: Export file contents
        front_idx: Zero-based field index of the card front
        back_idx: Zero-based field index of the card back

    Returns:
        Mapping of front -> back. Rows missing either field are skipped;
        a later row with the same front replaces an earlier one.

    Raises:
        ValueError: If an index is negative or both indices are equal
    """
    if front_idx < 0 or back_idx < 0:
        raise ValueError("Field indices must be non-negative")
    if front_idx == back_idx:
        raise ValueError("Front and back must be different fields")

    separator = DEFAULT_SEPARATOR
    flashcards: dict[str, str] = {}
    skipped = 0

    for line in text.splitlines():
        if line.startswith("#"):
            if line.startswith(SEPARATOR_HEADER):
                separator = _parse_separator(line[len(SEPARATOR_HEADER):], separator)
            continue
        if not line.strip():
            continue

        parts = line.split(separator)
        if front_idx >= len(parts) or back_idx >= len(parts):
            skipped += 1
            continue

        flashcards[parts[front_idx].strip()] = parts[back_idx].strip()

    if skipped:
        logger.warning(f"Skipped {skipped} rows without fields {front_idx}/{back_idx}")
    logger.debug(f"Parsed {len(flashcards)} cards from Anki text")

    return flashcards
