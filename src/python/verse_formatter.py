"""
Verse Formatter - Turn fetched passages into chat responses

Display modes:
- default / embed: embed dict; description truncated to 2048 characters
- code: fixed-width block, refused when the response exceeds 2000 characters
- blockquote: "> " quoted text, refused when the response exceeds 2000 characters

Refused responses become an error embed with the localized "passagetoolong"
string. All responses are plain dicts so the bridge can emit them as JSON.
"""

import re
from typing import Any, Dict, Optional

from verse_providers import VerseResult

# ============================================================================
# CONFIGURATION
# ============================================================================

EMBED_DESCRIPTION_LIMIT = 2048
MESSAGE_LIMIT = 2000
ELLIPSIS = '...'

DISPLAY_MODES = ('default', 'embed', 'code', 'blockquote')

# A cut that lands inside or right after a verse-number marker leaves
# "...<**17**>..."-style debris before the ellipsis
DANGLING_MARKER_PATTERN = re.compile(r'(\.*\s*<*\**\d*\**>*\.\.\.)$')

STRINGS: Dict[str, Dict[str, str]] = {
    'english': {
        'verseerror': 'Error',
        'invalidsection': 'This version does not support this section of the Bible.',
        'passagetoolong': 'This passage is too long to display in this format.',
        'sourcenotimplemented': 'Passages from this source are not available yet.',
    },
}
DEFAULT_LANGUAGE = 'english'


def get_string(language: Optional[str], key: str) -> str:
    """Localized string with English fallback."""
    table = STRINGS.get(language or DEFAULT_LANGUAGE, STRINGS[DEFAULT_LANGUAGE])
    return table.get(key, STRINGS[DEFAULT_LANGUAGE].get(key, key))


# ============================================================================
# RESPONSE BUILDERS
# ============================================================================

def create_embed(title: Optional[str], subtitle: Optional[str], description: str,
                 is_error: bool = False) -> Dict[str, Any]:
    """Build an embed response."""
    return {
        'type': 'embed',
        'title': title,
        'subtitle': subtitle,
        'description': description,
        'isError': is_error,
    }


def create_text(content: str) -> Dict[str, Any]:
    """Build a plain message response."""
    return {
        'type': 'text',
        'content': content,
    }


def truncate_for_embed(text: str) -> str:
    """Cut text to the embed limit, ending with an ellipsis."""
    if len(text) > EMBED_DESCRIPTION_LIMIT:
        text = text[:EMBED_DESCRIPTION_LIMIT - len(ELLIPSIS) - 1] + ELLIPSIS
        text = DANGLING_MARKER_PATTERN.sub(ELLIPSIS, text)
    return text


def format_passage(result: VerseResult, display: str = 'default',
                   language: Optional[str] = None) -> Dict[str, Any]:
    """
    Render a fetched passage for the chosen display mode.

    Args:
        result: Passage text from a provider
        display: One of DISPLAY_MODES; unknown modes fall back to 'default'
        language: Language for error strings

    Returns:
        Response dict; 'isError' is True when the passage was refused
    """
    title = f"{result.passage} - {result.version.name}"
    text = result.text

    if display == 'code':
        text = text.replace('**', '')
        if not text.startswith(' '):
            text = f" {text}"

        heading = result.title or ''
        response = f"**{title}**\n\n```Dust\n{heading}\n\n{text}```"
    elif display == 'blockquote':
        if result.title:
            quoted = f"> {result.title}\n> \n> {text}"
        else:
            quoted = f"> {text}"
        response = f"**{title}**\n\n{quoted}"
    else:
        return create_embed(title, result.title, truncate_for_embed(text))

    if len(response) > MESSAGE_LIMIT:
        return create_embed(None, title, get_string(language, 'passagetoolong'), is_error=True)

    return create_text(response)
