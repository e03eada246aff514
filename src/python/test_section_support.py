#!/usr/bin/env python3
"""
Tests for the book dictionary, canon tables and the canon validator.

A version only renders references whose canon section it includes. These
tests pin the table layout (disjoint, covering every book the scanner can
emit) and check_section_support() for both target shapes.
"""

import sys
import os
import unittest
from dataclasses import FrozenInstanceError

# Ensure src/python is on the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from book_data import (
    BOOK_NAMES,
    DEUTEROCANON,
    NEW_TESTAMENT,
    OLD_TESTAMENT,
    ORDINAL_RENAMES,
    REQUIRED_ORDINAL_BOOKS,
    USFM_CODES,
    get_usfm_code,
    remove_punctuation,
)
from reference_model import CheckTarget, Reference, ReferenceSpan, Section, VersionCapability, section_for_book
from verse_processor import check_section_support


PROTESTANT = VersionCapability(name='King James Version (KJV)', abbreviation='KJV')
CATHOLIC = VersionCapability(name='Revised Standard Version (RSV)', abbreviation='RSV',
                             supports_deuterocanon=True)
GREEK_NT = VersionCapability(name='SBL Greek New Testament (SBLGNT)', abbreviation='SBLGNT',
                             supports_old_testament=False)


class TestPunctuation(unittest.TestCase):

    def test_strips_both_ends(self):
        self.assertEqual(remove_punctuation('(John,'), 'John')
        self.assertEqual(remove_punctuation('“Romans”'), 'Romans')

    def test_keeps_inner_characters(self):
        self.assertEqual(remove_punctuation('3:16.'), '3:16')

    def test_only_punctuation(self):
        self.assertEqual(remove_punctuation('...'), '')


class TestCanonTables(unittest.TestCase):

    def test_tables_are_disjoint(self):
        self.assertFalse(OLD_TESTAMENT & NEW_TESTAMENT)
        self.assertFalse(OLD_TESTAMENT & DEUTEROCANON)
        self.assertFalse(NEW_TESTAMENT & DEUTEROCANON)

    def test_every_dictionary_book_has_a_section(self):
        for book in BOOK_NAMES:
            self.assertIsNotNone(section_for_book(book), book)

    def test_renamed_books_have_a_section(self):
        for book, (base, upper) in ORDINAL_RENAMES.items():
            for ordinal in range(1, upper):
                self.assertIsNotNone(section_for_book(f"{ordinal} {base}"), f"{ordinal} {base}")

    def test_psalm_151_is_deuterocanonical(self):
        self.assertEqual(section_for_book('Psalms 151'), Section.DEU)

    def test_ordinal_books_are_in_the_dictionary(self):
        for book in REQUIRED_ORDINAL_BOOKS:
            self.assertIn(book, BOOK_NAMES)

    def test_aliases_are_single_tokens(self):
        for book, aliases in BOOK_NAMES.items():
            for alias in aliases:
                self.assertNotIn(' ', alias, f"{book}: '{alias}'")

    def test_usfm_codes_cover_every_book(self):
        for book in OLD_TESTAMENT | NEW_TESTAMENT | DEUTEROCANON:
            self.assertIn(book, USFM_CODES)
        self.assertEqual(get_usfm_code('John'), 'JHN')
        self.assertIsNone(get_usfm_code('Hezekiah'))


class TestReference(unittest.TestCase):

    def test_section_derived_from_book(self):
        reference = Reference(book='Tobit', span=ReferenceSpan(4, 15, 4, 15), version=CATHOLIC)
        self.assertEqual(reference.section, Section.DEU)

    def test_reference_is_immutable(self):
        reference = Reference(book='John', span=ReferenceSpan(3, 16, 3, 16), version=CATHOLIC)
        with self.assertRaises(FrozenInstanceError):
            reference.book = 'Mark'

    def test_standard_format(self):
        cases = [
            (Reference('John', ReferenceSpan(3, 16, 3, 16), CATHOLIC), "John 3:16"),
            (Reference('1 Corinthians', ReferenceSpan(13, 4, 13, 7), CATHOLIC), "1 Corinthians 13:4-7"),
            (Reference('Genesis', ReferenceSpan(1, 1, 2, 3), CATHOLIC), "Genesis 1:1-2:3"),
        ]
        for reference, expected in cases:
            self.assertEqual(reference.to_standard_format(), expected)

    def test_to_dict(self):
        reference = Reference('Genesis', ReferenceSpan(1, 1, 2, 3), PROTESTANT)
        data = reference.to_dict()
        self.assertEqual(data['book'], 'Genesis')
        self.assertEqual(data['endingChapter'], 2)
        self.assertEqual(data['version'], 'KJV')
        self.assertEqual(data['section'], 'OT')
        self.assertEqual(data['normalizedReference'], "Genesis 1:1-2:3")


class TestCheckSectionSupport(unittest.TestCase):

    def test_deuterocanon_rejected_by_protestant_version(self):
        reference = Reference('Tobit', ReferenceSpan(1, 1, 1, 1), PROTESTANT)
        result = check_section_support(CheckTarget.resolved(reference), PROTESTANT)
        self.assertFalse(result.ok)
        self.assertEqual(result.section, Section.DEU)

    def test_deuterocanon_accepted(self):
        reference = Reference('Tobit', ReferenceSpan(1, 1, 1, 1), CATHOLIC)
        result = check_section_support(CheckTarget.resolved(reference), CATHOLIC)
        self.assertTrue(result.ok)

    def test_old_testament_rejected_by_new_testament_only_version(self):
        result = check_section_support(CheckTarget.candidate('Genesis'), GREEK_NT)
        self.assertFalse(result.ok)
        self.assertEqual(result.section, Section.OT)

    def test_new_testament_accepted(self):
        result = check_section_support(CheckTarget.candidate('3 John'), GREEK_NT)
        self.assertTrue(result.ok)
        self.assertEqual(result.section, Section.NT)

    def test_both_target_shapes_agree(self):
        for book in ['Genesis', 'John', 'Tobit', '2 Esdras', 'Psalms 151', 'Revelation']:
            reference = Reference(book, ReferenceSpan(1, 1, 1, 1), PROTESTANT)
            for version in (PROTESTANT, CATHOLIC, GREEK_NT):
                self.assertEqual(
                    check_section_support(CheckTarget.resolved(reference), version),
                    check_section_support(CheckTarget.candidate(book), version),
                    f"{book} / {version.abbreviation}",
                )

    def test_candidate_whitespace_is_ignored(self):
        result = check_section_support(CheckTarget.candidate(' Tobit '), PROTESTANT)
        self.assertEqual(result.section, Section.DEU)

    def test_unknown_book(self):
        result = check_section_support(CheckTarget.candidate('Hezekiah'), CATHOLIC)
        self.assertFalse(result.ok)
        self.assertIsNone(result.section)
        self.assertEqual(result.to_dict(), {'ok': False, 'section': None})


if __name__ == '__main__':
    unittest.main()
