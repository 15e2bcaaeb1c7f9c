"""
Nutrition goals.

Reads degrade to the stock goals when the table is missing, the store is
unreachable, or the user has not set any goals yet. Writes report
(success, error) instead of raising.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.database import table_exists
from core.exceptions import StoreErrorKind, read_with_default
from models import NutritionGoal, utcnow

logger = logging.getLogger(__name__)

NUTRITION_GOALS_TABLE = "nutrition_goals"

NOTICES = {
    StoreErrorKind.NO_ROWS: "You have not set nutrition goals yet; showing default targets.",
    StoreErrorKind.MISSING_SCHEMA: "Nutrition goals are not set up yet; showing default targets.",
    StoreErrorKind.CONNECTIVITY: "Could not reach your saved goals; showing default targets.",
    StoreErrorKind.MALFORMED: "Could not read your saved goals; showing default targets.",
}


@dataclass
class NutritionTargets:
    calories: float = 2000
    protein: float = 150
    carbs: float = 200
    fat: float = 70
    fiber: Optional[float] = 30
    sugar: Optional[float] = 50
    water: Optional[float] = 2000

    @classmethod
    def from_row(cls, row: NutritionGoal) -> "NutritionTargets":
        return cls(
            calories=row.calories,
            protein=row.protein,
            carbs=row.carbs,
            fat=row.fat,
            fiber=row.fiber,
            sugar=row.sugar,
            water=row.water,
        )

    def to_dict(self) -> Dict:
        return asdict(self)


class NutritionGoalsService:

    def __init__(self, db: Session):
        self.db = db

    def get_goals(self, user_id: str) -> Tuple[NutritionTargets, Optional[str]]:
        """Active goals plus a user-facing notice when defaults were substituted."""
        if not table_exists(self.db, NUTRITION_GOALS_TABLE):
            logger.warning(f"Table {NUTRITION_GOALS_TABLE} missing; default goals for {user_id}")
            return NutritionTargets(), NOTICES[StoreErrorKind.MISSING_SCHEMA]

        result = read_with_default(
            self.db,
            lambda: self._active_row(user_id),
            None,
            label=f"nutrition goals {user_id}",
        )
        if result.is_default:
            return NutritionTargets(), NOTICES.get(result.degraded)
        return NutritionTargets.from_row(result.value), None

    def save_goals(self, user_id: str, targets: NutritionTargets) -> Tuple[bool, Optional[str]]:
        """Update the active goals row, or insert one if there is none."""
        try:
            row = self._active_row(user_id)
            if row is None:
                row = NutritionGoal(user_id=user_id, is_active=True, created_at=utcnow())
                self.db.add(row)
            row.calories = targets.calories
            row.protein = targets.protein
            row.carbs = targets.carbs
            row.fat = targets.fat
            row.fiber = targets.fiber
            row.sugar = targets.sugar
            row.water = targets.water
            row.updated_at = utcnow()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save nutrition goals for {user_id}: {e}")
            return False, "Could not save your nutrition goals. Please try again."

        logger.info(f"Nutrition goals saved for {user_id}")
        return True, None

    def _active_row(self, user_id: str) -> Optional[NutritionGoal]:
        return (
            self.db.query(NutritionGoal)
            .filter(NutritionGoal.user_id == user_id, NutritionGoal.is_active.is_(True))
            .order_by(NutritionGoal.updated_at.desc())
            .first()
        )
