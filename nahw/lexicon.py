"""
Closed-set tables and orthography helpers for Quranic Arabic.

Every particle, pronoun and affix class the aggregation and detection engines
consult lives here, loaded once at import time. Lookups go through
``particle_class`` / ``pronoun_class`` / ``is_*`` helpers so the taxonomy can
be tested independently of the rule engines.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Optional

# -----------------------------------------------------------------------------
# --- Orthography
# -----------------------------------------------------------------------------

FATHA = "َ"
DAMMA = "ُ"
KASRA = "ِ"
FATHATAN = "ً"
DAMMATAN = "ٌ"
KASRATAN = "ٍ"
SUKUN = "ْ"
SHADDA = "ّ"
SUPERSCRIPT_ALEF = "ٰ"
HAMZA_ABOVE = "ٔ"
TATWEEL = "ـ"

SHORT_VOWELS = frozenset({FATHA, DAMMA, KASRA})
TANWIN = frozenset({FATHATAN, DAMMATAN, KASRATAN})

# Harakat, tanwin, Quranic annotation marks (U+06D6..U+06ED) and tatweel.
DIACRITICS = frozenset(
    {chr(c) for c in range(0x064B, 0x0660)}
    | {SUPERSCRIPT_ALEF, TATWEEL}
    | {chr(c) for c in range(0x06D6, 0x06EE)}
)

# Plain alif-lam and the Uthmani alif-wasla spelling.
ARTICLE_FORMS = ("ال", "ٱل")


def strip_diacritics(text: str) -> str:
    """Remove harakat, tanwin, Quranic marks and tatweel."""
    return "".join(ch for ch in text if ch not in DIACRITICS)


def normalize(text: str) -> str:
    """Lookup form: trimmed, without tatweel."""
    return text.strip().replace(TATWEEL, "")


def has_tanwin(text: str) -> bool:
    return any(ch in TANWIN for ch in text)


def final_marks(text: str) -> FrozenSet[str]:
    """Diacritics carried by the last letter, i.e. the case ending."""
    trailing = set()
    for ch in reversed(text.strip()):
        if ch not in DIACRITICS:
            break
        trailing.add(ch)
    return frozenset(trailing)


def has_kasra(text: str) -> bool:
    """Kasra on the last letter; a stem kasra (كِتَابُ) is not a case ending."""
    return KASRA in final_marks(text)


def has_fatha(text: str) -> bool:
    """Fatha on the last letter."""
    return FATHA in final_marks(text)


def begins_with_article(text: str) -> bool:
    """True if the word starts with the definite article (diacritics ignored)."""
    bare = strip_diacritics(text.strip())
    return bare.startswith(ARTICLE_FORMS)


def ends_in_short_vowel(text: str) -> bool:
    """True if the last letter carries a single short vowel (no nunation)."""
    marks = final_marks(text)
    return not (marks & TANWIN) and bool(marks & SHORT_VOWELS)


def _table(*forms: str) -> FrozenSet[str]:
    return frozenset(normalize(f) for f in forms)


# -----------------------------------------------------------------------------
# --- Particles with independent syntactic function (always standalone)
# -----------------------------------------------------------------------------

SYNTACTIC_PARTICLES: Dict[str, FrozenSet[str]] = {
    "preposition": _table("بِ", "فِي", "عَلَى", "إِلَى", "مِن", "مِنْ", "عَن", "عَنْ", "لِ", "كَ", "عِندَ", "لَدَى", "حَتَّى"),
    "accusative": _table("أَنَّ", "إِنَّ", "كَأَنَّ", "لَكِنَّ", "لَيْتَ", "لَعَلَّ", "عَسَى"),
    "jussive": _table("لَمْ", "لَا", "لَمَّا"),
    "negation": _table("لا", "ما", "لَم", "لَنْ", "لَيْسَ", "غَيْر"),
    "modal": _table("سَ", "سَوْفَ", "لَ"),
    "vocative": _table("يَا", "أَيُّهَا", "أَيَّتُهَا"),
    "conditional": _table("إِن", "لَو", "لَوْ", "لَوْلا", "لَوْما", "إِذا", "إِذَا", "كُلَّما"),
    "interrogative": _table("هَل", "هَلْ", "أَ", "مَتَى", "أَيْنَ", "كَيْفَ", "مَاذا"),
    "conjunction": _table("وَ", "فَ", "ثُمَّ", "أَو", "أَوْ", "أَم", "أَمْ", "بَل", "بَلْ", "لَكِن"),
    "emphasis": _table("قَدْ", "لَقَدْ", "إِنَّما", "إِنَّمَا", "نَعَم", "كَلَّا"),
    "exception": _table("إِلَّا", "سِوَى", "خَلا", "عَدا"),
    "result": _table("كَي", "كَيْ", "لِكَي"),
}

PRONOUNS: Dict[str, FrozenSet[str]] = {
    "independent": _table("أَنَا", "نَحْنُ", "أَنْتَ", "أَنْتِ", "أَنْتُمْ", "أَنْتُنَّ", "هُوَ", "هِيَ", "هُمْ", "هُنَّ", "هُمَا", "أَنْتُمَا"),
    "attached": _table("هُ", "هِ", "هَا", "هُم", "هُمْ", "هِمْ", "هُنَّ", "كَ", "كِ", "كُم", "كُمْ", "كُنَّ", "نِي", "نَا", "ي", "تُ", "تَ", "تِ", "هُمَا", "كُمَا"),
    "demonstrative": _table("هَذَا", "هَٰذَا", "هَذِهِ", "هَٰذِهِ", "ذَلِكَ", "ذَٰلِكَ", "تِلْكَ", "أُولَئِكَ", "أُولَٰئِكَ", "هَؤُلاء", "هَٰؤُلَاءِ"),
    "relative": _table("الَّذِي", "الَّتِي", "الَّذِينَ", "اللَّاتِي", "اللَّوَاتِي", "مَن", "مَنْ", "مَا"),
}

# Bare (diacritic-free) independent pronouns used by the detector.
BARE_INDEPENDENT_PRONOUNS = frozenset(
    {"هو", "هي", "هم", "هن", "هما", "أنت", "أنتم", "أنتن", "أنتما", "أنا", "نحن"}
)

# -----------------------------------------------------------------------------
# --- Purely morphological affixes (attach to their stem)
# -----------------------------------------------------------------------------

DEFINITE_ARTICLE = _table("ال", "الْ", "ٱل", "ٱلْ")
VERBAL_PREFIXES = _table("يَ", "يُ", "تَ", "تُ", "أَ", "أُ", "نَ", "نُ", "ن", "ي", "ت", "أ")
PREPOSITIONAL_PREFIXES = _table("بِ", "لِ")
PRONOUN_SUFFIXES = _table("نا", "نَا", "ت", "هم", "هُمْ", "هُم", "ها", "هَا", "هُ", "هِ", "كَ", "كِ", "كُم", "كُمْ", "كُنَّ", "هُنَّ", "ي", "نِي")
CASE_NUMBER_SUFFIXES = _table("ين", "ِينَ", "ان", "َانِ", "ون", "ُونَ", "ات", "َاتُ", "َاتِ", "ة", "َةُ", "َةِ", "َةَ")

# Bare attached-pronoun endings recognised on a fused noun, longest first.
ATTACHED_PRONOUN_ENDINGS = tuple(
    sorted({"ه", "ها", "هم", "هن", "هما", "ك", "كم", "كن", "كما", "ي", "نا"}, key=len, reverse=True)
)


def _bare_index(tables: Dict[str, FrozenSet[str]]) -> Dict[str, FrozenSet[str]]:
    return {name: frozenset(strip_diacritics(form) for form in forms) for name, forms in tables.items()}


_BARE_PARTICLES = _bare_index(SYNTACTIC_PARTICLES)
_BARE_PRONOUNS = _bare_index(PRONOUNS)
_BARE_PRONOUN_SUFFIXES = frozenset(strip_diacritics(f) for f in PRONOUN_SUFFIXES)
_BARE_CASE_NUMBER_SUFFIXES = frozenset(strip_diacritics(f) for f in CASE_NUMBER_SUFFIXES)


def _match(text: str, tables, bare_tables) -> Optional[str]:
    key = normalize(text)
    if not key:
        return None
    for name, forms in tables.items():
        if key in forms:
            return name
    bare = strip_diacritics(key)
    for name, forms in bare_tables.items():
        if bare in forms:
            return name
    return None


def particle_class(text: str) -> Optional[str]:
    """Name of the syntactic particle class of ``text``, if any."""
    return _match(text, SYNTACTIC_PARTICLES, _BARE_PARTICLES)


def pronoun_class(text: str) -> Optional[str]:
    """Name of the pronoun class of ``text``, if any."""
    return _match(text, PRONOUNS, _BARE_PRONOUNS)


def is_definite_article(text: str) -> bool:
    key = normalize(text)
    return key in DEFINITE_ARTICLE or strip_diacritics(key) in ARTICLE_FORMS


def is_verbal_prefix(text: str) -> bool:
    return normalize(text) in VERBAL_PREFIXES


def is_prepositional_prefix(text: str) -> bool:
    return normalize(text) in PREPOSITIONAL_PREFIXES


def is_pronoun_suffix(text: str) -> bool:
    key = normalize(text)
    return key in PRONOUN_SUFFIXES or strip_diacritics(key) in _BARE_PRONOUN_SUFFIXES


def is_case_number_suffix(text: str) -> bool:
    key = normalize(text)
    return key in CASE_NUMBER_SUFFIXES or strip_diacritics(key) in _BARE_CASE_NUMBER_SUFFIXES


def attached_pronoun_ending(text: str, min_stem: int = 2) -> Optional[str]:
    """
    Bare attached-pronoun suffix ending ``text``, if the remaining stem is long enough.

    Args:
        text: Word text, diacritics allowed
        min_stem: Minimum number of letters that must remain before the suffix

    Returns:
        The matching bare suffix, or None
    """
    bare = strip_diacritics(text.strip())
    for ending in ATTACHED_PRONOUN_ENDINGS:
        if bare.endswith(ending) and len(bare) - len(ending) >= max(1, min_stem):
            return ending
    return None


def is_independent_pronoun(text: str) -> bool:
    return strip_diacritics(normalize(text)) in BARE_INDEPENDENT_PRONOUNS
