import logging
from typing import Optional

from sqlalchemy import select, update

from core.scorer.weights import WeightVector
from database.models import MatchingWeightVersion
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _to_vector(row: MatchingWeightVersion) -> WeightVector:
    return WeightVector(
        weights={k: float(v) for k, v in (row.weights or {}).items()},
        version=row.version,
        source=row.source,
        created_at=row.created_at,
    )


class WeightRepository(BaseRepository):
    def get_active_weight_vector(self) -> Optional[WeightVector]:
        stmt = select(MatchingWeightVersion).where(
            MatchingWeightVersion.is_active == True
        ).order_by(MatchingWeightVersion.version.desc()).limit(1)
        row = self.db.execute(stmt).scalar_one_or_none()
        return _to_vector(row) if row is not None else None

    def get_weight_vector(self, version: int) -> Optional[WeightVector]:
        stmt = select(MatchingWeightVersion).where(MatchingWeightVersion.version == version)
        row = self.db.execute(stmt).scalar_one_or_none()
        return _to_vector(row) if row is not None else None

    def save_weight_vector(self, vector: WeightVector) -> MatchingWeightVersion:
        """
        Persist vector as the active version.

        The version column is unique, so a concurrent writer that derived
        the same next version fails at flush with IntegrityError.
        """
        self.db.execute(
            update(MatchingWeightVersion)
            .where(MatchingWeightVersion.is_active == True)
            .values(is_active=False)
        )
        row = MatchingWeightVersion(
            version=vector.version,
            weights=vector.as_dict(),
            source=vector.source,
            is_active=True,
        )
        self.db.add(row)
        self.db.flush()
        logger.debug(f"Saved weight vector v{vector.version}")
        return row
