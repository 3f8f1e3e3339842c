from typing import Any, Optional, Type

from sqlalchemy.orm import Session


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, model: Type, pk: Any) -> Optional[Any]:
        return self.db.get(model, pk)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
