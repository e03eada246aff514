"""
Book Data - Book dictionary, canon tables and punctuation normalization

This module holds the static data the mention scanner works against:

- BOOK_NAMES: canonical book name -> single-token aliases (full names and abbreviations)
- OLD_TESTAMENT / NEW_TESTAMENT / DEUTEROCANON: three disjoint canon tables
- USFM_CODES: book name -> USFM code used by API.Bible passage ids
- remove_punctuation(): strips leading/trailing punctuation from a token

Aliases are single whitespace-free tokens because messages are tokenized on
whitespace. Numbered books list both their bare forms ("Corinthians", "Cor"),
which need the ordinal as the preceding token, and self-numbered forms
("1Cor", "1Corinthians") which carry it.
"""

import string
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional


# ============================================================================
# PUNCTUATION NORMALIZATION
# ============================================================================

# Typographic quotes and dashes show up in pasted chat text
PUNCTUATION = string.punctuation + '‘’“”–—…«»'


def remove_punctuation(token: str) -> str:
    """Strip leading and trailing punctuation from a token."""
    return token.strip().strip(PUNCTUATION)


# ============================================================================
# BOOK DICTIONARY
# ============================================================================

_OT_ALIASES: Dict[str, List[str]] = {
    'Genesis': ['Genesis', 'Gen', 'Ge', 'Gn'],
    'Exodus': ['Exodus', 'Exod', 'Exo', 'Ex'],
    'Leviticus': ['Leviticus', 'Lev', 'Le', 'Lv'],
    'Numbers': ['Numbers', 'Num', 'Nu', 'Nm', 'Numb'],
    'Deuteronomy': ['Deuteronomy', 'Deut', 'Dt', 'Deu'],
    'Joshua': ['Joshua', 'Josh', 'Jos', 'Jsh'],
    'Judges': ['Judges', 'Judg', 'Jdg', 'Jdgs'],
    'Ruth': ['Ruth', 'Rth', 'Ru'],
    '1 Samuel': ['Samuel', 'Sam', 'Sa', '1Samuel', '1Sam', '1Sa', '1Sm'],
    '2 Samuel': ['Samuel', 'Sam', 'Sa', '2Samuel', '2Sam', '2Sa', '2Sm'],
    '1 Kings': ['Kings', 'Kgs', 'Ki', '1Kings', '1Kgs', '1Ki'],
    '2 Kings': ['Kings', 'Kgs', 'Ki', '2Kings', '2Kgs', '2Ki'],
    '1 Chronicles': ['Chronicles', 'Chron', 'Chr', '1Chronicles', '1Chron', '1Chr', '1Ch'],
    '2 Chronicles': ['Chronicles', 'Chron', 'Chr', '2Chronicles', '2Chron', '2Chr', '2Ch'],
    'Ezra': ['Ezra', 'Ezr'],
    'Nehemiah': ['Nehemiah', 'Neh', 'Ne'],
    'Esther': ['Esther', 'Esth', 'Est'],
    'Job': ['Job', 'Jb'],
    'Psalms': ['Psalms', 'Psalm', 'Psa', 'Pss', 'Ps'],
    'Proverbs': ['Proverbs', 'Prov', 'Pro', 'Prv', 'Pr'],
    'Ecclesiastes': ['Ecclesiastes', 'Eccles', 'Eccl', 'Ecc', 'Qoheleth'],
    'Song of Solomon': ['Song', 'Songs', 'SOS', 'Canticles', 'Cant'],
    'Isaiah': ['Isaiah', 'Isa'],
    'Jeremiah': ['Jeremiah', 'Jer', 'Je', 'Jr'],
    'Lamentations': ['Lamentations', 'Lam'],
    'Ezekiel': ['Ezekiel', 'Ezek', 'Eze', 'Ezk'],
    'Daniel': ['Daniel', 'Dan', 'Dn'],
    'Hosea': ['Hosea', 'Hos'],
    'Joel': ['Joel', 'Jl'],
    'Amos': ['Amos'],
    'Obadiah': ['Obadiah', 'Obad', 'Ob'],
    'Jonah': ['Jonah', 'Jnh', 'Jon'],
    'Micah': ['Micah', 'Mic', 'Mc'],
    'Nahum': ['Nahum', 'Nah', 'Na'],
    'Habakkuk': ['Habakkuk', 'Hab', 'Hb'],
    'Zephaniah': ['Zephaniah', 'Zeph', 'Zep', 'Zp'],
    'Haggai': ['Haggai', 'Hag', 'Hg'],
    'Zechariah': ['Zechariah', 'Zech', 'Zec', 'Zc'],
    'Malachi': ['Malachi', 'Mal', 'Ml'],
}

_NT_ALIASES: Dict[str, List[str]] = {
    'Matthew': ['Matthew', 'Matt', 'Mat', 'Mt'],
    'Mark': ['Mark', 'Mrk', 'Mk'],
    'Luke': ['Luke', 'Luk', 'Lk'],
    'John': ['John', 'Joh', 'Jhn', 'Jn'],
    'Acts': ['Acts', 'Act', 'Ac'],
    'Romans': ['Romans', 'Rom', 'Ro', 'Rm'],
    '1 Corinthians': ['Corinthians', 'Cor', 'Co', '1Corinthians', '1Cor', '1Co'],
    '2 Corinthians': ['Corinthians', 'Cor', 'Co', '2Corinthians', '2Cor', '2Co'],
    'Galatians': ['Galatians', 'Gal', 'Ga'],
    'Ephesians': ['Ephesians', 'Eph', 'Ephes'],
    'Philippians': ['Philippians', 'Phil', 'Php', 'Pp'],
    'Colossians': ['Colossians', 'Col'],
    '1 Thessalonians': ['Thessalonians', 'Thess', 'Thes', 'Th', '1Thessalonians', '1Thess', '1Thes', '1Th'],
    '2 Thessalonians': ['Thessalonians', 'Thess', 'Thes', 'Th', '2Thessalonians', '2Thess', '2Thes', '2Th'],
    '1 Timothy': ['Timothy', 'Tim', 'Ti', '1Timothy', '1Tim', '1Ti'],
    '2 Timothy': ['Timothy', 'Tim', 'Ti', '2Timothy', '2Tim', '2Ti'],
    'Titus': ['Titus', 'Tit'],
    'Philemon': ['Philemon', 'Philem', 'Phlm', 'Phm'],
    'Hebrews': ['Hebrews', 'Heb'],
    'James': ['James', 'Jas', 'Jm'],
    '1 Peter': ['Peter', 'Pet', 'Pe', 'Pt', '1Peter', '1Pet', '1Pe', '1Pt'],
    '2 Peter': ['Peter', 'Pet', 'Pe', 'Pt', '2Peter', '2Pet', '2Pe', '2Pt'],
    '1 John': ['1John', '1Jn', '1Jhn', '1Joh'],
    '2 John': ['2John', '2Jn', '2Jhn', '2Joh'],
    '3 John': ['3John', '3Jn', '3Jhn', '3Joh'],
    'Jude': ['Jude', 'Jud', 'Jd'],
    'Revelation': ['Revelation', 'Revelations', 'Rev', 'Apocalypse'],
}

_DEU_ALIASES: Dict[str, List[str]] = {
    'Tobit': ['Tobit', 'Tob', 'Tb'],
    'Judith': ['Judith', 'Jdt', 'Jdth'],
    'Greek Esther': ['GkEsth', 'EsthGr', 'AddEsth', 'AEs'],
    'Wisdom': ['Wisdom', 'Wis', 'Wisd'],
    'Sirach': ['Sirach', 'Sir', 'Ecclesiasticus', 'Ecclus'],
    'Baruch': ['Baruch', 'Bar'],
    'Letter of Jeremiah': ['EpJer', 'LetJer', 'LJe'],
    'Prayer of Azariah': ['Azariah', 'PrAzar', 'Aza'],
    'Susanna': ['Susanna', 'Sus'],
    'Bel and the Dragon': ['Bel'],
    '1 Maccabees': ['Maccabees', 'Macc', 'Mac', '1Maccabees', '1Macc', '1Mac', '1Ma'],
    '2 Maccabees': ['Maccabees', 'Macc', 'Mac', '2Maccabees', '2Macc', '2Mac', '2Ma'],
    '3 Maccabees': ['Maccabees', 'Macc', 'Mac', '3Maccabees', '3Macc', '3Mac', '3Ma'],
    '4 Maccabees': ['Maccabees', 'Macc', 'Mac', '4Maccabees', '4Macc', '4Mac', '4Ma'],
    '1 Esdras': ['Esdras', 'Esd', '1Esdras', '1Esd'],
    '2 Esdras': ['Esdras', 'Esd', '2Esdras', '2Esd'],
    'Prayer of Manasseh': ['Manasseh', 'PrMan'],
    'Psalms 151': ['Ps151', 'Psalm151'],
}

# canonical name -> frozenset of aliases, read-only after import
BOOK_NAMES: Mapping[str, FrozenSet[str]] = MappingProxyType({
    book: frozenset(aliases)
    for table in (_OT_ALIASES, _NT_ALIASES, _DEU_ALIASES)
    for book, aliases in table.items()
})


def get_book_names() -> Mapping[str, FrozenSet[str]]:
    """Return the read-only book dictionary (book name -> aliases)."""
    return BOOK_NAMES


# ============================================================================
# CANON TABLES
# ============================================================================

OLD_TESTAMENT: FrozenSet[str] = frozenset(_OT_ALIASES)
NEW_TESTAMENT: FrozenSet[str] = frozenset(_NT_ALIASES)
DEUTEROCANON: FrozenSet[str] = frozenset(_DEU_ALIASES)


# ============================================================================
# DISAMBIGUATION POLICY DATA
# ============================================================================

# Alias book -> (renamed base, exclusive upper bound of the preceding ordinal).
# "2 John" keeps its base name, "2 Ezra" becomes "2 Esdras".
ORDINAL_RENAMES: Dict[str, tuple] = {
    'John': ('John', 4),
    'Ezra': ('Esdras', 3),
}

# Books that must be introduced by their own ordinal when matched through a
# bare alias. Value is the exclusive upper bound of that ordinal.
REQUIRED_ORDINAL_BOOKS: Dict[str, int] = {
    '1 Corinthians': 3, '2 Corinthians': 3,
    '1 Thessalonians': 3, '2 Thessalonians': 3,
    '1 Timothy': 3, '2 Timothy': 3,
    '1 Peter': 3, '2 Peter': 3,
    '1 Samuel': 3, '2 Samuel': 3,
    '1 Kings': 3, '2 Kings': 3,
    '1 Chronicles': 3, '2 Chronicles': 3,
    '1 Esdras': 3, '2 Esdras': 3,
    '1 Maccabees': 5, '2 Maccabees': 5, '3 Maccabees': 5, '4 Maccabees': 5,
}

PSALM_151 = 151


# ============================================================================
# USFM BOOK CODES (API.Bible passage ids)
# ============================================================================

USFM_CODES: Dict[str, str] = {
    'Genesis': 'GEN', 'Exodus': 'EXO', 'Leviticus': 'LEV', 'Numbers': 'NUM',
    'Deuteronomy': 'DEU', 'Joshua': 'JOS', 'Judges': 'JDG', 'Ruth': 'RUT',
    '1 Samuel': '1SA', '2 Samuel': '2SA', '1 Kings': '1KI', '2 Kings': '2KI',
    '1 Chronicles': '1CH', '2 Chronicles': '2CH', 'Ezra': 'EZR', 'Nehemiah': 'NEH',
    'Esther': 'EST', 'Job': 'JOB', 'Psalms': 'PSA', 'Proverbs': 'PRO',
    'Ecclesiastes': 'ECC', 'Song of Solomon': 'SNG', 'Isaiah': 'ISA',
    'Jeremiah': 'JER', 'Lamentations': 'LAM', 'Ezekiel': 'EZK', 'Daniel': 'DAN',
    'Hosea': 'HOS', 'Joel': 'JOL', 'Amos': 'AMO', 'Obadiah': 'OBA', 'Jonah': 'JON',
    'Micah': 'MIC', 'Nahum': 'NAM', 'Habakkuk': 'HAB', 'Zephaniah': 'ZEP',
    'Haggai': 'HAG', 'Zechariah': 'ZEC', 'Malachi': 'MAL',
    'Matthew': 'MAT', 'Mark': 'MRK', 'Luke': 'LUK', 'John': 'JHN', 'Acts': 'ACT',
    'Romans': 'ROM', '1 Corinthians': '1CO', '2 Corinthians': '2CO',
    'Galatians': 'GAL', 'Ephesians': 'EPH', 'Philippians': 'PHP',
    'Colossians': 'COL', '1 Thessalonians': '1TH', '2 Thessalonians': '2TH',
    '1 Timothy': '1TI', '2 Timothy': '2TI', 'Titus': 'TIT', 'Philemon': 'PHM',
    'Hebrews': 'HEB', 'James': 'JAS', '1 Peter': '1PE', '2 Peter': '2PE',
    '1 John': '1JN', '2 John': '2JN', '3 John': '3JN', 'Jude': 'JUD',
    'Revelation': 'REV',
    'Tobit': 'TOB', 'Judith': 'JDT', 'Greek Esther': 'ESG', 'Wisdom': 'WIS',
    'Sirach': 'SIR', 'Baruch': 'BAR', 'Letter of Jeremiah': 'LJE',
    'Prayer of Azariah': 'S3Y', 'Susanna': 'SUS', 'Bel and the Dragon': 'BEL',
    '1 Maccabees': '1MA', '2 Maccabees': '2MA', '3 Maccabees': '3MA',
    '4 Maccabees': '4MA', '1 Esdras': '1ES', '2 Esdras': '2ES',
    'Prayer of Manasseh': 'MAN', 'Psalms 151': 'PS2',
}


def get_usfm_code(book: str) -> Optional[str]:
    """Get the USFM code for a canonical book name."""
    return USFM_CODES.get(book)
