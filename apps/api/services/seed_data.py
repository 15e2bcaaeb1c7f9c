"""
Sample data provider.

Generates a plausible wellness history for demos and local development.
Output is deterministic per user so screenshots and tests are stable, and
every entry is flagged `is_sample` so it can never be mistaken for stored
data.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List
import random

SAMPLE_BASE_MIN = 60
SAMPLE_BASE_MAX = 89
DAILY_VARIATION = 5.0
MOODS = ("great", "good", "okay", "low")


@dataclass
class SampleWellnessEntry:
    date: date
    overall_score: int
    stress_level: float
    sleep_hours: float
    mood: str
    recovery_score: int
    is_sample: bool = True


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


class SampleDataProvider:

    def wellness_history(self, user_id: str, days: int, today: date) -> List[SampleWellnessEntry]:
        """``days`` entries ending ``today``, newest first, drifting a few points per day."""
        rng = random.Random(f"wellness:{user_id}")
        score = float(rng.randint(SAMPLE_BASE_MIN, SAMPLE_BASE_MAX))

        oldest_first = []
        for offset in range(days - 1, -1, -1):
            score = _clamp(score + rng.uniform(-DAILY_VARIATION, DAILY_VARIATION), 0, 100)
            oldest_first.append(SampleWellnessEntry(
                date=today - timedelta(days=offset),
                overall_score=round(score),
                stress_level=round(_clamp(10 - score / 10 + rng.uniform(-1, 1), 0, 10), 1),
                sleep_hours=round(rng.uniform(6.0, 8.5), 1),
                mood=MOODS[min(len(MOODS) - 1, int((100 - score) // 15))],
                recovery_score=round(_clamp(score + rng.uniform(-10, 10), 0, 100)),
            ))
        return list(reversed(oldest_first))
