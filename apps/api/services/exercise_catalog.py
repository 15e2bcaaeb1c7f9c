"""
Exercise Catalog

Explicit lookup table from exercise keyword to the muscle groups it trains.
An exercise name is tagged with every group whose keyword it contains
(case-insensitive), so "Romanian Deadlift" counts for both back and legs.

Exercises that match no keyword belong to no muscle group. They are simply
left out of volume totals; `unmatched_exercises` exists so the table can be
audited against real logs.
"""

from typing import Dict, FrozenSet, Iterable, List, Tuple

MUSCLE_GROUPS: Tuple[str, ...] = ("chest", "back", "legs", "shoulders", "arms")

# keyword -> muscle groups
EXERCISE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "bench press": ("chest",),
    "push up": ("chest",),
    "chest fly": ("chest",),
    "dips": ("chest",),
    "pull up": ("back",),
    "row": ("back",),
    "lat pulldown": ("back",),
    "deadlift": ("back", "legs"),
    "squat": ("legs",),
    "lunge": ("legs",),
    "leg press": ("legs",),
    "shoulder press": ("shoulders",),
    "lateral raise": ("shoulders",),
    "front raise": ("shoulders",),
    "curl": ("arms",),
    "tricep": ("arms",),
    "close grip": ("arms",),
}


def keywords_for(muscle_group: str) -> List[str]:
    """Keywords that map to ``muscle_group`` (empty for unknown groups)."""
    group = muscle_group.strip().lower()
    return [kw for kw, groups in EXERCISE_KEYWORDS.items() if group in groups]


def muscle_groups_for(exercise_name: str) -> FrozenSet[str]:
    name = (exercise_name or "").lower()
    tags = set()
    for keyword, groups in EXERCISE_KEYWORDS.items():
        if keyword in name:
            tags.update(groups)
    return frozenset(tags)


def targets(exercise_name: str, muscle_group: str) -> bool:
    return muscle_group.strip().lower() in muscle_groups_for(exercise_name)


def unmatched_exercises(exercise_names: Iterable[str]) -> List[str]:
    """Distinct names that no keyword tags, in first-seen order."""
    seen = []
    for name in exercise_names:
        if name not in seen and not muscle_groups_for(name):
            seen.append(name)
    return seen
