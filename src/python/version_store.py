"""
Version Store - Version records backed by a JSON file

Loads the known versions (abbreviation, source, supported canon sections) from
VERSE_VERSIONS_FILE, falling back to DEFAULT_VERSIONS when the file is missing
or unreadable. find_by_abbreviation() is the asynchronous, read-only lookup the
recognizer uses for trailing version overrides ("John 3:16 KJV").
"""

import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from book_data import remove_punctuation
from reference_model import VersionCapability
from verse_providers import is_valid_source

# ============================================================================
# CONFIGURATION
# ============================================================================

VERSIONS_FILE = Path(os.environ.get(
    'VERSE_VERSIONS_FILE',
    str(Path(__file__).parent / "versions.json")
))

DEFAULT_VERSION = os.environ.get('VERSE_DEFAULT_VERSION', 'RSV')

DEFAULT_VERSIONS: List[VersionCapability] = [
    VersionCapability(name='Revised Standard Version (RSV)', abbreviation='RSV', source='bg',
                      supports_deuterocanon=True),
    VersionCapability(name='New Revised Standard Version (NRSV)', abbreviation='NRSV', source='bg',
                      supports_deuterocanon=True),
    VersionCapability(name='King James Version (KJV)', abbreviation='KJV', source='bg'),
    VersionCapability(name='New King James Version (NKJV)', abbreviation='NKJV', source='bg'),
    VersionCapability(name='English Standard Version (ESV)', abbreviation='ESV', source='bg'),
    VersionCapability(name='New International Version (NIV)', abbreviation='NIV', source='bg'),
    VersionCapability(name='New American Standard Bible (NASB)', abbreviation='NASB', source='bg'),
    VersionCapability(name='New American Bible (Revised Edition) (NABRE)', abbreviation='NABRE',
                      source='bg', supports_deuterocanon=True),
    VersionCapability(name='Douay-Rheims 1899 American Edition (DRA)', abbreviation='DRA', source='bg',
                      supports_deuterocanon=True),
    VersionCapability(name='SBL Greek New Testament (SBLGNT)', abbreviation='SBLGNT', source='bg',
                      supports_old_testament=False),
]


class VersionStore:
    """Version records keyed by upper-cased abbreviation."""

    def __init__(self, versions_file: Path = VERSIONS_FILE):
        self.versions_file = versions_file
        self.versions: Dict[str, VersionCapability] = self._load_versions()

    def _load_versions(self) -> Dict[str, VersionCapability]:
        """Load version records from file, or the defaults."""
        if self.versions_file.exists():
            try:
                with open(self.versions_file, 'r', encoding='utf-8') as f:
                    records = json.load(f)
                versions = {}
                for record in records:
                    source = str(record.get('src', 'bg'))
                    if not is_valid_source(source):
                        print(f"  ⚠ Skipping {record.get('abbv')}: unknown source '{source}'", file=sys.stderr)
                        continue
                    version = VersionCapability.from_dict({**record, 'src': source.lower()})
                    versions[version.abbreviation.upper()] = version
                if versions:
                    return versions
                print(f"  ⚠ No usable versions in {self.versions_file}, using defaults", file=sys.stderr)
            except (json.JSONDecodeError, KeyError, TypeError, AttributeError, IOError) as e:
                print(f"  ⚠ Could not read {self.versions_file}: {e}", file=sys.stderr)
        return {version.abbreviation.upper(): version for version in DEFAULT_VERSIONS}

    def save(self):
        """Save all records to file."""
        self.versions_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.versions_file, 'w', encoding='utf-8') as f:
            json.dump([v.to_dict() for v in self.all()], f, indent=2, ensure_ascii=False)

    def all(self) -> List[VersionCapability]:
        return sorted(self.versions.values(), key=lambda v: v.abbreviation)

    def get(self, abbreviation: str) -> Optional[VersionCapability]:
        """Look a version up by abbreviation (case-insensitive)."""
        return self.versions.get(remove_punctuation(abbreviation).upper())

    def add(self, version: VersionCapability):
        """Add or replace a record. Call save() to persist."""
        self.versions[version.abbreviation.upper()] = version

    def default_version(self) -> Optional[VersionCapability]:
        """The configured default version, the first record available, or None for an empty store."""
        version = self.get(DEFAULT_VERSION)
        if version is None:
            versions = self.all()
            version = versions[0] if versions else None
        return version

    async def find_by_abbreviation(self, abbreviation: str) -> Optional[VersionCapability]:
        """Read-only lookup used for trailing version overrides."""
        return self.get(abbreviation)
