"""
Subject → area classification

Every subject maps to exactly one coarse area. Matching ignores case and
accents so "Física", "fisica" and "FÍSICA" land in the same place; anything
not in the table is Area.OTHER.
"""

import unicodedata
from typing import Iterable

from studyquest.models.achievement import Area

SUBJECTS_BY_AREA: dict[Area, tuple[str, ...]] = {
    Area.LANGUAGES: (
        "Português", "Literatura", "Inglês", "Espanhol", "Artes", "Educação Física",
        "Portuguese", "Literature", "English", "Spanish", "Arts", "Physical Education",
    ),
    Area.HUMANITIES: (
        "História", "Geografia", "Filosofia", "Sociologia",
        "History", "Geography", "Philosophy", "Sociology",
    ),
    Area.NATURAL_SCIENCES: (
        "Física", "Química", "Biologia",
        "Physics", "Chemistry", "Biology",
    ),
    Area.MATHEMATICS: (
        "Matemática",
        "Mathematics", "Math",
    ),
    Area.ESSAY: (
        "Redação",
        "Essay", "Essay Writing",
    ),
}


def normalize_subject(subject: str) -> str:
    """Lowercase, trim and strip accents"""
    decomposed = unicodedata.normalize("NFKD", subject.strip().casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_AREA_LOOKUP: dict[str, Area] = {
    normalize_subject(subject): area
    for area, subjects in SUBJECTS_BY_AREA.items()
    for subject in subjects
}


def subject_to_area(subject: str) -> Area:
    """Area for a subject, Area.OTHER when unmapped"""
    return _AREA_LOOKUP.get(normalize_subject(subject), Area.OTHER)


def count_by_area(subjects: Iterable[str]) -> dict[str, int]:
    """Session count per area value; areas with no sessions are absent"""
    counts: dict[str, int] = {}
    for subject in subjects:
        area = subject_to_area(subject).value
        counts[area] = counts.get(area, 0) + 1
    return counts
