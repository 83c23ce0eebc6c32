"""
Skill / Level Inference
========================

Maps extracted text and learner-declared skills to a canonical skill set
and an NSQF-style proficiency level.

Rules:
    - Declared skills (list, JSON list, or comma-separated string) are
      used verbatim as the skill set.
    - Without declared skills, every table key contained in the
      lowercase text is collected, in table order.
    - level = max(table[skill] or 1 for each skill, declared level, 1)

This module contains NO I/O and NO randomness: identical inputs always
produce an identical SkillProfile.
"""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

from credverify.schemas.record import SkillProfile

logger = logging.getLogger("credverify.verify.skills")

DeclaredSkills = Optional[Union[str, Iterable[str]]]


def parse_declared_skills(raw: DeclaredSkills) -> Optional[list[str]]:
    """
    Normalize declared skills into a list of stripped, de-duplicated names.

    Accepts a list, a JSON-encoded list, or a comma-separated string;
    a string that fails to parse as a JSON list is comma-split.

    Returns:
        The skill list (possibly empty when an empty list was declared),
        or None when nothing was declared at all.
    """
    if raw is None:
        return None

    if isinstance(raw, str):
        stripped = raw.strip()
        if not stripped:
            return None
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items: Iterable[Any] = parsed
        else:
            items = stripped.split(",")
    else:
        items = raw

    skills: list[str] = []
    for item in items:
        name = str(item).strip()
        if name and name not in skills:
            skills.append(name)
    return skills


def coerce_level(value: Any) -> Optional[int]:
    """Convert a declared level to an int >= 1, or None if malformed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        level = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return level if level >= 1 else None


class SkillInferencer:
    """
    Lookup-table skill and level inference.

    The table is copied into a read-only mapping at construction, so
    callers (and tests) can inject alternate tables without touching
    any process-wide state.

    Usage:
        inferencer = SkillInferencer({"python": 5, "cloud": 6})
        profile = inferencer.infer(text.lower(), ["python", "cloud"], None)
        # SkillProfile(skills=["python", "cloud"], level=6)

    Args:
        table: Mapping of lowercase skill name → level.
    """

    def __init__(self, table: Mapping[str, int]):
        self.table: Mapping[str, int] = MappingProxyType(
            {str(k).lower(): int(v) for k, v in table.items()}
        )

    def lookup(self, skill: str) -> int:
        """Table level for a skill; unknown skills count as level 1."""
        return self.table.get(skill.strip().lower(), 1)

    def detect(self, text_lower: str) -> list[str]:
        """Table keys that occur as substrings of the text."""
        haystack = (text_lower or "").lower()
        return [skill for skill in self.table if skill in haystack]

    def infer(
        self,
        text_lower: str,
        declared_skills: DeclaredSkills = None,
        declared_level: Any = None,
    ) -> SkillProfile:
        """
        Build the skill profile for one credential.

        Args:
            text_lower: Extracted text (lowercased by the caller; lowered again defensively).
            declared_skills: Learner-declared skills in any accepted encoding.
            declared_level: Learner-declared level; malformed values are ignored.

        Returns:
            SkillProfile with level >= 1.
        """
        skills = parse_declared_skills(declared_skills)
        if skills is None:
            skills = self.detect(text_lower)

        level = 1
        declared = coerce_level(declared_level)
        if declared is not None:
            level = max(level, declared)
        for skill in skills:
            level = max(level, self.lookup(skill))

        logger.debug(f"Inferred skills={skills} level={level}")
        return SkillProfile(skills=skills, level=level)
