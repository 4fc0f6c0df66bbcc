from __future__ import annotations

from services.api.app.config import db_auto_create
from services.api.app.db.database import get_engine
from services.api.app.db.models import Base


def init_db() -> None:
    if not db_auto_create():
        return

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
