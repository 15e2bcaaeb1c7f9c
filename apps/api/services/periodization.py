"""
Periodization Cycle Generator

Builds one macrocycle for a goal list and duration, then breaks it into
4-week mesocycles and 1-week microcycles:

    macrocycle  macro_<hex>            whole plan, phases from the goals
    mesocycle   meso_<macro>_<i>       ceil(duration / 4) blocks of 4 weeks
    microcycle  micro_<meso>_<j>       4 per mesocycle, the 4th always a deload

Strength goals get three phases sized floor(40% / 40% / 20%) of the
duration. Other goals produce no phases.

Every row is inserted and committed on its own. There is no cross-row
transaction: a failure part way through leaves the rows already written.
Parents are referenced by id string only.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
import copy
import logging
import math
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import PeriodizationCycle

logger = logging.getLogger(__name__)

MESOCYCLE_WEEKS = 4
MICROCYCLES_PER_MESOCYCLE = 4
DELOAD_MICROCYCLE_INDEX = 3

CYCLE_TYPES = ("macrocycle", "mesocycle", "microcycle")

# (id, name, share of duration, intensity %, volume multiplier, focus, deload)
STRENGTH_PHASES = (
    ("accumulation", "Accumulation Phase", 0.4, (65, 80), 1.2, ["volume", "technique"], False),
    ("intensification", "Intensification Phase", 0.4, (80, 95), 0.8, ["intensity", "strength"], False),
    ("realization", "Realization Phase", 0.2, (90, 105), 0.6, ["peak", "testing"], True),
)


class PeriodizationError(Exception):
    """A cycle row could not be written."""


@dataclass
class PeriodizationPlan:
    macrocycle: PeriodizationCycle
    mesocycles: List[PeriodizationCycle] = field(default_factory=list)
    microcycles: List[PeriodizationCycle] = field(default_factory=list)


def training_phases(goals: List[str], duration_weeks: int) -> List[Dict[str, Any]]:
    if "strength" not in goals:
        logger.info(f"No phase template for goals {goals}; macrocycle will have no phases")
        return []

    return [
        {
            "id": phase_id,
            "name": name,
            "duration_weeks": math.floor(duration_weeks * share),
            "intensity_range": {"min": low, "max": high},
            "volume_multiplier": volume,
            "focus_areas": list(focus),
            "deload_week": deload,
        }
        for phase_id, name, share, (low, high), volume, focus, deload in STRENGTH_PHASES
    ]


def mesocycle_count(duration_weeks: int) -> int:
    return math.ceil(duration_weeks / MESOCYCLE_WEEKS)


def deload_phases(phases: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Phases for a deload microcycle: a copy of the first phase marked deload."""
    if not phases:
        return []
    first = copy.deepcopy(phases[0])
    first["deload_week"] = True
    return [first]


def cycle_to_dict(cycle: PeriodizationCycle) -> Dict[str, Any]:
    return {
        "id": cycle.id,
        "type": cycle.cycle_type,
        "name": cycle.name,
        "duration_weeks": cycle.duration_weeks,
        "start_date": cycle.start_date,
        "end_date": cycle.end_date,
        "goals": list(cycle.goals or []),
        "phases": list(cycle.phases or []),
        "parent_cycle_id": cycle.parent_cycle_id,
        "is_deload": cycle.is_deload,
    }


class PeriodizationCycleGenerator:

    def __init__(self, db: Session):
        self.db = db

    def create_plan(
        self,
        user_id: str,
        goals: List[str],
        duration_weeks: int,
        today: Optional[date] = None,
    ) -> PeriodizationPlan:
        """
        Persist a macrocycle with its meso- and microcycles.

        Raises PeriodizationError when a row cannot be written.
        """
        if duration_weeks < 1:
            raise ValueError("duration_weeks must be at least 1")

        start = today or date.today()
        phases = training_phases(goals, duration_weeks)

        macro_id = f"macro_{uuid.uuid4().hex}"
        macrocycle = self._insert(PeriodizationCycle(
            id=macro_id,
            user_id=user_id,
            cycle_type="macrocycle",
            name=f"{duration_weeks}-Week Training Plan",
            duration_weeks=duration_weeks,
            start_date=start,
            end_date=start + timedelta(weeks=duration_weeks),
            goals=list(goals),
            phases=phases,
            is_deload=False,
        ))
        plan = PeriodizationPlan(macrocycle=macrocycle)

        for i in range(mesocycle_count(duration_weeks)):
            meso_start = start + timedelta(weeks=i * MESOCYCLE_WEEKS)
            mesocycle = self._insert(PeriodizationCycle(
                id=f"meso_{macro_id}_{i}",
                user_id=user_id,
                cycle_type="mesocycle",
                name=f"Mesocycle {i + 1}",
                duration_weeks=MESOCYCLE_WEEKS,
                start_date=meso_start,
                end_date=meso_start + timedelta(weeks=MESOCYCLE_WEEKS),
                goals=list(goals),
                phases=copy.deepcopy(phases),
                parent_cycle_id=macro_id,
                is_deload=False,
            ))
            plan.mesocycles.append(mesocycle)

            for j in range(MICROCYCLES_PER_MESOCYCLE):
                micro_start = meso_start + timedelta(weeks=j)
                is_deload = j == DELOAD_MICROCYCLE_INDEX
                plan.microcycles.append(self._insert(PeriodizationCycle(
                    id=f"micro_{mesocycle.id}_{j}",
                    user_id=user_id,
                    cycle_type="microcycle",
                    name=f"Week {j + 1}",
                    duration_weeks=1,
                    start_date=micro_start,
                    end_date=micro_start + timedelta(weeks=1),
                    goals=list(goals),
                    phases=deload_phases(phases) if is_deload else copy.deepcopy(phases),
                    parent_cycle_id=mesocycle.id,
                    is_deload=is_deload,
                )))

        logger.info(
            f"Periodization {user_id}: created {macro_id} weeks={duration_weeks} "
            f"phases={len(phases)} mesocycles={len(plan.mesocycles)} microcycles={len(plan.microcycles)}"
        )
        return plan

    def _insert(self, cycle: PeriodizationCycle) -> PeriodizationCycle:
        try:
            self.db.add(cycle)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to write periodization cycle {cycle.id}: {e}")
            raise PeriodizationError(f"Could not save {cycle.cycle_type} {cycle.id}") from e
        return cycle

    def list_cycles(self, user_id: str, cycle_type: Optional[str] = None) -> List[PeriodizationCycle]:
        if cycle_type is not None and cycle_type not in CYCLE_TYPES:
            raise ValueError(f"Unknown cycle type '{cycle_type}'")
        query = self.db.query(PeriodizationCycle).filter(PeriodizationCycle.user_id == user_id)
        if cycle_type:
            query = query.filter(PeriodizationCycle.cycle_type == cycle_type)
        return query.order_by(PeriodizationCycle.start_date, PeriodizationCycle.id).all()
