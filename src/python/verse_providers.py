"""
Verse Providers - Fetch passage text for an accepted Reference

Each version record names the source its text comes from. Sources form a closed
enumeration; every source carries either a provider class or the explicit
UNIMPLEMENTED marker, and select_provider() checks that marker instead of a
null interface:

    bg  BibleGateway   scrapes the print view of a passage
    ab  API.Bible      REST API, needs API_BIBLE_KEY and the version's provider id
    bh  Bible Hub      not implemented
    bs  Bible Server   not implemented

Providers never raise for network or parsing problems: they log a warning to
stderr and return None, so one bad passage does not abort a message.
"""

import os
import re
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import requests
from bs4 import BeautifulSoup

from book_data import get_usfm_code
from reference_model import Reference, VersionCapability

# ============================================================================
# CONFIGURATION
# ============================================================================

BIBLE_GATEWAY_BASE = os.environ.get('BIBLE_GATEWAY_BASE', "https://www.biblegateway.com")
API_BIBLE_BASE = os.environ.get('API_BIBLE_BASE', "https://api.scripture.api.bible/v1")
API_BIBLE_KEY = os.environ.get('API_BIBLE_KEY')

API_RATE_LIMIT_DELAY = 0.5
REQUEST_TIMEOUT = 10

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (compatible; VerseRecognizer/1.0) "
        "Gecko/20100101 Firefox/120.0"
    )
}


# ============================================================================
# RESULT TYPE
# ============================================================================

@dataclass
class VerseResult:
    """Passage text returned by a provider."""
    passage: str  # e.g. "John 3:16"
    version: VersionCapability
    title: Optional[str]  # Section headings, when requested and present
    text: str


def format_verse_number(number: str) -> str:
    """Inline verse-number marker used in passage text."""
    return f"<**{number}**>"


# ============================================================================
# SHARED CLIENT BEHAVIOUR
# ============================================================================

class _ProviderBase:
    """Caching and rate limiting shared by all providers."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)
        self.cache: Dict[str, VerseResult] = {}
        self.last_request_time = 0

    def _rate_limit(self):
        """Ensure we don't exceed API rate limits."""
        elapsed = time.time() - self.last_request_time
        if elapsed < API_RATE_LIMIT_DELAY:
            time.sleep(API_RATE_LIMIT_DELAY - elapsed)
        self.last_request_time = time.time()

    def get_result(self, reference: Reference, headings: bool, verse_numbers: bool,
                   version: VersionCapability) -> Optional[VerseResult]:
        """
        Fetch passage text from the provider or cache.

        Args:
            reference: Accepted reference
            headings: Include section headings as the result title
            verse_numbers: Keep inline verse-number markers in the text
            version: Version to fetch (usually reference.version)

        Returns:
            VerseResult, or None if the passage could not be fetched
        """
        cache_key = f"{reference}|{version.abbreviation}|{headings}|{verse_numbers}"
        if cache_key in self.cache:
            return self.cache[cache_key]

        result = self._fetch(reference, headings, verse_numbers, version)
        if result:
            self.cache[cache_key] = result
        return result

    def _fetch(self, reference: Reference, headings: bool, verse_numbers: bool,
               version: VersionCapability) -> Optional[VerseResult]:
        raise NotImplementedError


# ============================================================================
# BIBLEGATEWAY
# ============================================================================

class BibleGatewayProvider(_ProviderBase):
    """Scrapes passage text from the BibleGateway print view."""

    def _fetch(self, reference, headings, verse_numbers, version):
        self._rate_limit()

        try:
            response = self.session.get(
                f"{BIBLE_GATEWAY_BASE}/passage/",
                params={
                    'search': reference.to_standard_format(),
                    'version': version.abbreviation,
                    'interface': 'print',
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            print(f"  ⚠ Request error for {reference}: {e}", file=sys.stderr)
            return None

        if response.status_code != 200:
            print(f"  ⚠ HTTP {response.status_code} for {reference}", file=sys.stderr)
            return None

        return self.parse_passage(response.text, reference, headings, verse_numbers, version)

    def parse_passage(self, html: str, reference: Reference, headings: bool, verse_numbers: bool,
                      version: VersionCapability) -> Optional[VerseResult]:
        """Extract title and text from a BibleGateway passage page."""
        soup = BeautifulSoup(html, 'lxml')
        container = soup.select_one('div.passage-text') or soup.select_one('div.passage-col')
        if container is None:
            print(f"  ⚠ No passage found for {reference} ({version.abbreviation})", file=sys.stderr)
            return None

        passage_element = soup.select_one('.bcv') or soup.select_one('.dropdown-display-text')
        passage = passage_element.get_text(strip=True) if passage_element else str(reference)

        # Footnote and cross-reference markers are never shown
        for element in container.select('sup.footnote, sup.crossreference, div.footnotes, div.crossrefs'):
            element.decompose()

        title = None
        heading_elements = container.select('h3, h4')
        if headings and heading_elements:
            title = ' / '.join(h.get_text(' ', strip=True) for h in heading_elements)
        for element in heading_elements:
            element.decompose()

        for element in container.select('sup.versenum'):
            if verse_numbers:
                element.replace_with(format_verse_number(element.get_text(strip=True)) + ' ')
            else:
                element.decompose()

        # The chapter number stands in for verse 1
        for element in container.select('span.chapternum'):
            if verse_numbers:
                element.replace_with(format_verse_number('1') + ' ')
            else:
                element.decompose()

        paragraphs = container.select('p') or [container]
        text = ' '.join(p.get_text(' ') for p in paragraphs)
        text = re.sub(r'\s+', ' ', text).strip()

        if not text:
            print(f"  ⚠ Empty passage for {reference} ({version.abbreviation})", file=sys.stderr)
            return None

        return VerseResult(passage=passage, version=version, title=title, text=text)


# ============================================================================
# API.BIBLE
# ============================================================================

class ApiBibleProvider(_ProviderBase):
    """Fetches plain-text passages from API.Bible."""

    def __init__(self, session: Optional[requests.Session] = None, api_key: Optional[str] = None):
        super().__init__(session)
        self.api_key = api_key if api_key is not None else API_BIBLE_KEY

    @staticmethod
    def passage_id(reference: Reference) -> Optional[str]:
        """Build an API.Bible passage id, e.g. "JHN.3.16-JHN.3.17"."""
        code = get_usfm_code(reference.book)
        if not code:
            return None
        span = reference.span
        ending_chapter = span.ending_chapter or span.starting_chapter
        ending_verse = span.ending_verse or span.starting_verse
        return (f"{code}.{span.starting_chapter}.{span.starting_verse}"
                f"-{code}.{ending_chapter}.{ending_verse}")

    def _fetch(self, reference, headings, verse_numbers, version):
        if not self.api_key:
            print("  ⚠ API_BIBLE_KEY is not set", file=sys.stderr)
            return None
        if not version.provider_id:
            print(f"  ⚠ {version.abbreviation} has no API.Bible id", file=sys.stderr)
            return None

        passage_id = self.passage_id(reference)
        if not passage_id:
            print(f"  ⚠ Unknown book: {reference.book}", file=sys.stderr)
            return None

        self._rate_limit()

        try:
            response = self.session.get(
                f"{API_BIBLE_BASE}/bibles/{version.provider_id}/passages/{passage_id}",
                params={
                    'content-type': 'text',
                    'include-notes': 'false',
                    'include-titles': str(headings).lower(),
                    'include-chapter-numbers': 'false',
                    'include-verse-numbers': str(verse_numbers).lower(),
                },
                headers={'api-key': self.api_key},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            print(f"  ⚠ Request error for {reference}: {e}", file=sys.stderr)
            return None

        if response.status_code != 200:
            print(f"  ⚠ HTTP {response.status_code} for {reference}", file=sys.stderr)
            return None

        try:
            data = response.json()['data']
        except (ValueError, KeyError) as e:
            print(f"  ⚠ Unexpected response for {reference}: {e}", file=sys.stderr)
            return None

        text = re.sub(r'\[(\d+)\]', lambda m: format_verse_number(m.group(1)), data.get('content', ''))
        text = re.sub(r'\s+', ' ', text).strip()
        if not text:
            return None

        return VerseResult(
            passage=data.get('reference') or str(reference),
            version=version,
            title=None,
            text=text,
        )


# ============================================================================
# SOURCES
# ============================================================================

class Source(Enum):
    BIBLE_GATEWAY = 'bg'
    API_BIBLE = 'ab'
    BIBLE_HUB = 'bh'
    BIBLE_SERVER = 'bs'


class _Unimplemented:
    """Marker for a source that has no provider yet."""

    def __repr__(self):
        return 'UNIMPLEMENTED'


UNIMPLEMENTED = _Unimplemented()

SOURCE_NAMES = {
    Source.BIBLE_GATEWAY: 'BibleGateway',
    Source.API_BIBLE: 'API.Bible',
    Source.BIBLE_HUB: 'Bible Hub',
    Source.BIBLE_SERVER: 'Bible Server',
}

SOURCE_PROVIDERS = {
    Source.BIBLE_GATEWAY: BibleGatewayProvider,
    Source.API_BIBLE: ApiBibleProvider,
    Source.BIBLE_HUB: UNIMPLEMENTED,
    Source.BIBLE_SERVER: UNIMPLEMENTED,
}

_provider_instances: Dict[Source, _ProviderBase] = {}


def is_valid_source(source: str) -> bool:
    """Check a source code ("bg", "ab", ...) against the known sources."""
    return source.lower() in {s.value for s in Source}


def source_has_provider(source: str) -> bool:
    """Check whether a known source code has an implemented provider."""
    return SOURCE_PROVIDERS[Source(source.lower())] is not UNIMPLEMENTED


def select_provider(source: str) -> Optional[_ProviderBase]:
    """
    Get the provider for a version's source code.

    Returns:
        A shared provider instance, or None for unimplemented sources

    Raises:
        ValueError: for codes outside the Source enumeration
    """
    key = Source(source.lower())
    entry = SOURCE_PROVIDERS[key]
    if entry is UNIMPLEMENTED:
        return None

    if key not in _provider_instances:
        _provider_instances[key] = entry()
    return _provider_instances[key]
