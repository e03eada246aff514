#!/usr/bin/env python3
"""
Verse Processor for Chat Messages

This module turns free chat text into normalized Bible references:
1. Scan the message tokens for book names and disambiguate numbered books
2. Optionally skip mentions written inside a bracket pair (e.g. "<John 3:16>")
3. Parse the token after each mention as a chapter:verse span
4. Validate the resolved reference against a version's canon sections

Everything here is synchronous and side-effect free except the optional
version override lookup in generate_reference(), which awaits the version store.

Parse failures are silent: a chat message contains plenty of tokens that only
look like book names, so a mention without a usable span is dropped (None).
"""

import re
import sys
from typing import List, Mapping, Optional, Sequence, FrozenSet

from book_data import (
    ORDINAL_RENAMES,
    PSALM_151,
    REQUIRED_ORDINAL_BOOKS,
    get_book_names,
    remove_punctuation,
)
from reference_model import (
    BookMention,
    CheckTarget,
    Reference,
    ReferenceSpan,
    SectionCheck,
    TargetKind,
    VersionCapability,
    section_for_book,
)

# ============================================================================
# CONFIGURATION
# ============================================================================

TOKEN_PATTERN = re.compile(r'\S+')
NUMERAL_PATTERN = re.compile(r'[0-9]+')

# Typographic dashes typed as range separators
RANGE_DASHES = ('–', '—')

DEFAULT_IGNORING_BRACKETS = '<>'


# ============================================================================
# DEBUG LOGGING
# ============================================================================

def _debug_log(message: str, debug: bool = False, prefix: str = "[VERSE]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


# ============================================================================
# TOKENIZATION
# ============================================================================

def tokenize_message(message: str) -> List[str]:
    """Split a message into its whitespace-delimited tokens."""
    return TOKEN_PATTERN.findall(message)


def token_offsets(message: str) -> List[int]:
    """Character offset of every token, aligned with tokenize_message()."""
    return [match.start() for match in TOKEN_PATTERN.finditer(message)]


def _to_integer(token: Optional[str]) -> Optional[int]:
    """Parse a punctuation-stripped token as a non-negative integer."""
    if token is None:
        return None
    cleaned = remove_punctuation(token)
    if not NUMERAL_PATTERN.fullmatch(cleaned):
        return None
    return int(cleaned)


# ============================================================================
# MENTION SCANNER
# ============================================================================

def _build_alias_index(books: Mapping[str, FrozenSet[str]]) -> dict:
    """Map each casefolded alias to the books that use it, in dictionary order."""
    index: dict = {}
    for book, aliases in books.items():
        for alias in aliases:
            key = alias.casefold()
            if book not in index.setdefault(key, []):
                index[key].append(book)
    return index


_DEFAULT_ALIAS_INDEX = _build_alias_index(get_book_names())


def _disambiguate(book: str, token: str, index: int, tokens: Sequence[str]) -> Optional[BookMention]:
    """
    Apply the per-book policy to an alias match.

    Policy table:
        John / Ezra       preceding ordinal renames ("2 John", "1 Esdras"), else plain
        Psalms            following "151" -> "Psalms 151" at the numeral's index, else plain
        Jeremiah          passed through unchanged; Letter of Jeremiah has its own aliases
        ordinal books     bare alias needs its own ordinal as the preceding token, else dropped
        everything else   plain mention

    Returns:
        The mention to emit, or None when the match is dropped
    """
    previous = _to_integer(tokens[index - 1]) if index > 0 else None

    if book in ORDINAL_RENAMES:
        base, upper = ORDINAL_RENAMES[book]
        if previous is not None and 0 < previous < upper:
            return BookMention(name=f"{previous} {base}", token_index=index)
        return BookMention(name=book, token_index=index)

    if book == 'Psalms':
        following = _to_integer(tokens[index + 1]) if index + 1 < len(tokens) else None
        if following == PSALM_151:
            return BookMention(name=f"{book} {PSALM_151}", token_index=index + 1)
        return BookMention(name=book, token_index=index)

    if book == 'Jeremiah':
        return BookMention(name=book, token_index=index)

    if book in REQUIRED_ORDINAL_BOOKS:
        # Self-numbered aliases ("1Cor", "2Tim") carry their own ordinal
        if token[:1].isdigit():
            return BookMention(name=book, token_index=index)
        ordinal = int(book.split(' ', 1)[0])
        if previous is not None and 0 < previous < REQUIRED_ORDINAL_BOOKS[book] and previous == ordinal:
            return BookMention(name=book, token_index=index)
        return None

    return BookMention(name=book, token_index=index)


def find_books_in_message(message: str,
                          books: Optional[Mapping[str, FrozenSet[str]]] = None,
                          debug: bool = False) -> List[BookMention]:
    """
    Find candidate book mentions in a chat message.

    Every token is punctuation-stripped and compared case-insensitively with
    every alias of every book. A single token may produce several mentions
    (e.g. "Samuel" after "1" is checked for both 1 and 2 Samuel); mentions
    that have no valid span after them are discarded later by the span parser.

    Args:
        message: Raw chat message
        books: Book dictionary (book name -> aliases); defaults to book_data
        debug: Emit per-mention debug lines on stderr

    Returns:
        List of BookMention in token order
    """
    alias_index = _DEFAULT_ALIAS_INDEX if books is None else _build_alias_index(books)
    tokens = tokenize_message(message)
    results: List[BookMention] = []

    for index, original_token in enumerate(tokens):
        token = remove_punctuation(original_token)
        if not token:
            continue

        for book in alias_index.get(token.casefold(), ()):
            mention = _disambiguate(book, token, index, tokens)
            if mention is None:
                _debug_log(f"dropped '{book}' at token {index} (missing ordinal)", debug, "[SCAN]")
                continue
            _debug_log(f"'{original_token}' -> {mention.name} @ {mention.token_index}", debug, "[SCAN]")
            results.append(mention)

    return results


# ============================================================================
# BRACKET FILTER
# ============================================================================

def is_surrounded_by_brackets(brackets: Sequence[str], mention: BookMention, message: str) -> bool:
    """
    Check whether a mention's token lies inside a bracketed span of the message.

    Every non-nested open...close span is considered, not just the first one.

    Args:
        brackets: Two-character pair such as "<>" or ("[", "]")
        mention: Mention produced by find_books_in_message() for this message
        message: The same raw message

    Returns:
        True if some bracketed span overlaps the mention's token
    """
    if len(brackets) != 2:
        raise ValueError(f"Expected a bracket pair, got {brackets!r}")

    opening, closing = brackets[0], brackets[1]
    tokens = tokenize_message(message)
    offsets = token_offsets(message)

    if not 0 <= mention.token_index < len(tokens):
        return False

    token_start = offsets[mention.token_index]
    token_end = token_start + len(tokens[mention.token_index])

    # Innermost spans only: the body may not contain either bracket character
    span_pattern = re.compile(
        re.escape(opening) + '[^' + re.escape(opening + closing) + ']*' + re.escape(closing)
    )

    for match in span_pattern.finditer(message):
        if match.start() < token_end and token_start < match.end():
            return True

    return False


# ============================================================================
# SPAN PARSER
# ============================================================================

def _parse_chapter_range(token: str) -> Optional[ReferenceSpan]:
    """Parse "chapter:verse-chapter:verse"."""
    pairs = token.split('-')
    if len(pairs) != 2:
        return None

    numbers: List[int] = []
    for pair in pairs:
        parts = pair.split(':')
        if len(parts) != 2:
            return None
        for part in parts:
            value = _to_integer(part)
            if value is None:
                return None
            numbers.append(value)

    return ReferenceSpan(
        starting_chapter=numbers[0],
        starting_verse=numbers[1],
        ending_chapter=numbers[2],
        ending_verse=numbers[3],
    )


def _parse_verse_range(token: str) -> Optional[ReferenceSpan]:
    """Parse "chapter:verse" or "chapter:verse-verse"."""
    chapter_text, verse_text = token.split(':')

    chapter = _to_integer(chapter_text)
    if chapter is None:
        return None

    has_range = '-' in verse_text
    verses = verse_text.split('-')
    if len(verses) > 2:
        return None

    starting_verse = _to_integer(verses[0])
    if starting_verse is None:
        return None

    if has_range:
        # "16-" or "16-x" must not collapse to a single verse
        ending_verse = _to_integer(verses[1])
        if ending_verse is None:
            return None
    else:
        ending_verse = starting_verse

    return ReferenceSpan(
        starting_chapter=chapter,
        starting_verse=starting_verse,
        ending_chapter=chapter,
        ending_verse=ending_verse,
    )


def parse_span(mention: BookMention, message: str, debug: bool = False) -> Optional[ReferenceSpan]:
    """
    Parse the token right after a mention as a chapter:verse span.

    Handles:
    - Single verse: "3:16"
    - Verse range: "13:4-7"
    - Chapter range: "1:1-2:3"

    Args:
        mention: Mention whose following token is parsed
        message: The raw message the mention was found in
        debug: Emit debug lines on stderr

    Returns:
        A valid ReferenceSpan, or None when there is no usable span
    """
    tokens = tokenize_message(message)
    next_index = mention.token_index + 1

    if next_index >= len(tokens):
        return None

    token = tokens[next_index]
    for dash in RANGE_DASHES:
        token = token.replace(dash, '-')

    colon_count = token.count(':')
    if colon_count == 2:
        span = _parse_chapter_range(token)
    elif colon_count == 1:
        span = _parse_verse_range(token)
    else:
        span = None

    if span is None or not span.is_valid():
        _debug_log(f"no span for {mention.name} in '{tokens[next_index]}'", debug, "[SPAN]")
        return None

    return span


async def generate_reference(mention: BookMention, message: str, version: VersionCapability,
                             store=None, debug: bool = False) -> Optional[Reference]:
    """
    Build a Reference for a mention, honouring a trailing version override.

    After a successful span parse, the message's last token is looked up in
    the version store; a hit replaces the supplied version. A miss or a failed
    lookup keeps the supplied version.

    Args:
        mention: Mention to resolve
        message: The raw message
        version: Version to use when the message names none
        store: Object with an async find_by_abbreviation(abbv) method, or None
        debug: Emit debug lines on stderr

    Returns:
        The Reference, or None when the mention has no valid span
    """
    span = parse_span(mention, message, debug)
    if span is None:
        return None

    if store is not None:
        last_token = tokenize_message(message)[-1]
        try:
            mentioned_version = await store.find_by_abbreviation(last_token)
        except Exception as e:
            print(f"  ⚠ Version lookup failed for '{last_token}': {e}", file=sys.stderr)
            mentioned_version = None

        if mentioned_version is not None:
            version = mentioned_version

    return Reference(book=mention.name, span=span, version=version)


async def find_references(message: str, version: VersionCapability, store=None,
                          ignoring_brackets: Optional[Sequence[str]] = None,
                          debug: bool = False) -> List[Reference]:
    """
    Run a full recognition pass over one message.

    Args:
        message: Raw chat message
        version: Default version for the references
        store: Version store used for the trailing-abbreviation override
        ignoring_brackets: Bracket pair whose contents are skipped, or None
        debug: Emit debug lines on stderr

    Returns:
        Accepted references in message order
    """
    references: List[Reference] = []

    for mention in find_books_in_message(message, debug=debug):
        if ignoring_brackets and is_surrounded_by_brackets(ignoring_brackets, mention, message):
            _debug_log(f"skipping bracketed {mention.name}", debug, "[SCAN]")
            continue

        reference = await generate_reference(mention, message, version, store, debug)
        if reference is not None:
            references.append(reference)

    return references


# ============================================================================
# CANON VALIDATOR
# ============================================================================

def check_section_support(target: CheckTarget, version: VersionCapability) -> SectionCheck:
    """
    Check whether a version includes the canon section of a reference.

    Args:
        target: CheckTarget.resolved(reference) or CheckTarget.candidate(book_name)
        version: Version whose capability flags are consulted

    Returns:
        SectionCheck(ok, section); ok is False for books outside every table
    """
    if target.kind is TargetKind.RESOLVED:
        section = target.reference.section
    elif target.kind is TargetKind.CANDIDATE:
        section = section_for_book(target.book_name)
    else:
        raise ValueError(f"Unknown check target: {target.kind}")

    ok = section is not None and version.supports(section)
    return SectionCheck(ok=ok, section=section)
