"""
Reference Model - Data types shared by the recognizer, providers and bridge

This module defines the dataclasses that flow through one message-processing pass:

- BookMention: a token position identified as a book, after disambiguation
- ReferenceSpan: chapter/verse range parsed from the token after a mention
- VersionCapability: a version record (which canon sections it includes)
- Reference: the immutable, accepted reference handed to rendering
- CheckTarget / SectionCheck: input and output of the canon validator

Design principles:
- Reference and its parts are frozen; nothing is mutated after construction
- JSON-serializable via to_dict() (camelCase keys) for the stdin/stdout bridge
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from book_data import DEUTEROCANON, NEW_TESTAMENT, OLD_TESTAMENT


# ============================================================================
# CANON SECTIONS
# ============================================================================

class Section(Enum):
    """Disjoint partitions of the canon."""
    OT = 'OT'
    NT = 'NT'
    DEU = 'DEU'


def section_for_book(book: str) -> Optional[Section]:
    """
    Determine which canon table a resolved book name belongs to.

    Args:
        book: Canonical (already disambiguated) book name, e.g. "Tobit", "3 John"

    Returns:
        The Section, or None for names outside every table
    """
    name = book.strip()
    if name in OLD_TESTAMENT:
        return Section.OT
    if name in NEW_TESTAMENT:
        return Section.NT
    if name in DEUTEROCANON:
        return Section.DEU
    return None


# ============================================================================
# MENTIONS AND SPANS
# ============================================================================

@dataclass(frozen=True)
class BookMention:
    """A book found in a message, with the index of its triggering token."""
    name: str  # e.g. "3 John", "Psalms 151"
    token_index: int  # Position in the whitespace token sequence

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'tokenIndex': self.token_index,
        }


@dataclass(frozen=True)
class ReferenceSpan:
    """
    Chapter/verse range parsed from a single token.

    Zero components mean "not parsed"; only spans with a starting chapter and
    starting verse of at least 1 are valid.
    """
    starting_chapter: int = 0
    starting_verse: int = 0
    ending_chapter: int = 0
    ending_verse: int = 0

    def is_valid(self) -> bool:
        return self.starting_chapter >= 1 and self.starting_verse >= 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startingChapter': self.starting_chapter,
            'startingVerse': self.starting_verse,
            'endingChapter': self.ending_chapter,
            'endingVerse': self.ending_verse,
        }


# ============================================================================
# VERSIONS
# ============================================================================

@dataclass(frozen=True)
class VersionCapability:
    """A version record as stored in the version store."""
    name: str  # e.g. "Revised Standard Version (RSV)"
    abbreviation: str  # e.g. "RSV"
    source: str = 'bg'  # Source code, see verse_providers.Source
    supports_old_testament: bool = True
    supports_new_testament: bool = True
    supports_deuterocanon: bool = False
    provider_id: Optional[str] = None  # Provider-side id (API.Bible bible id)

    def supports(self, section: Optional[Section]) -> bool:
        """Check the capability flag matching a canon section."""
        if section is Section.OT:
            return self.supports_old_testament
        if section is Section.NT:
            return self.supports_new_testament
        if section is Section.DEU:
            return self.supports_deuterocanon
        return False

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'abbv': self.abbreviation,
            'src': self.source,
            'supportsOldTestament': self.supports_old_testament,
            'supportsNewTestament': self.supports_new_testament,
            'supportsDeuterocanon': self.supports_deuterocanon,
        }
        if self.provider_id is not None:
            result['providerId'] = self.provider_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VersionCapability':
        """Build a record from its stored (camelCase) form."""
        return cls(
            name=data['name'],
            abbreviation=data['abbv'],
            source=data.get('src', 'bg'),
            supports_old_testament=bool(data.get('supportsOldTestament', True)),
            supports_new_testament=bool(data.get('supportsNewTestament', True)),
            supports_deuterocanon=bool(data.get('supportsDeuterocanon', False)),
            provider_id=data.get('providerId'),
        )


# ============================================================================
# REFERENCES
# ============================================================================

@dataclass(frozen=True)
class Reference:
    """An accepted reference. The section is derived once from the book."""
    book: str
    span: ReferenceSpan
    version: VersionCapability
    section: Optional[Section] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'section', section_for_book(self.book))

    def to_standard_format(self) -> str:
        """Convert to standard citation format"""
        span = self.span
        if span.ending_chapter and span.ending_chapter != span.starting_chapter:
            return (f"{self.book} {span.starting_chapter}:{span.starting_verse}"
                    f"-{span.ending_chapter}:{span.ending_verse}")
        if span.ending_verse and span.ending_verse != span.starting_verse:
            return f"{self.book} {span.starting_chapter}:{span.starting_verse}-{span.ending_verse}"
        return f"{self.book} {span.starting_chapter}:{span.starting_verse}"

    def __str__(self) -> str:
        return self.to_standard_format()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'book': self.book,
            **self.span.to_dict(),
            'version': self.version.abbreviation,
            'section': self.section.value if self.section else None,
            'normalizedReference': self.to_standard_format(),
        }


# ============================================================================
# CANON VALIDATOR INPUT / OUTPUT
# ============================================================================

class TargetKind(Enum):
    RESOLVED = 'resolved'
    CANDIDATE = 'candidate'


@dataclass(frozen=True)
class CheckTarget:
    """
    Tagged input of the canon validator.

    Either a resolved Reference or a raw candidate book name that has not
    been turned into a Reference yet. Build with resolved() / candidate().
    """
    kind: TargetKind
    reference: Optional[Reference] = None
    book_name: Optional[str] = None

    @classmethod
    def resolved(cls, reference: Reference) -> 'CheckTarget':
        return cls(kind=TargetKind.RESOLVED, reference=reference)

    @classmethod
    def candidate(cls, book_name: str) -> 'CheckTarget':
        return cls(kind=TargetKind.CANDIDATE, book_name=book_name)


@dataclass(frozen=True)
class SectionCheck:
    """Result of checking a reference against a version's capabilities."""
    ok: bool
    section: Optional[Section]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'section': self.section.value if self.section else None,
        }
