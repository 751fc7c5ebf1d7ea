"""
SQLite/SQLAlchemy persistence for GE Flip Tracker.
Stores users' flips (trade records) with soft delete.

Every store method is scoped by user id: one user can never read or touch
another user's rows.  Each mutation is a single commit.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import (
    Boolean, Column, DateTime, Index, Integer, String, Text, create_engine, event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ge_tracker import config
from ge_tracker.domain.models import Flip

logger = logging.getLogger(__name__)

Base = declarative_base()

# Fields a caller may change through ``FlipStore.update``.
UPDATABLE_FIELDS = frozenset({
    "item_name", "item_id", "item_icon", "quantity", "buy_price", "sell_price",
    "buy_date", "sell_date", "notes", "category", "strategy_tag", "is_members",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class FlipRecord(Base):
    """One logged flip.  ``deleted_at`` set means tombstoned (recoverable)."""
    __tablename__ = "flips"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)

    item_name = Column(String(255), nullable=False)
    item_id = Column(Integer, nullable=True)
    item_icon = Column(String(512), nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    buy_price = Column(Integer, nullable=False)
    sell_price = Column(Integer, nullable=True)
    buy_date = Column(DateTime, nullable=False, default=_utcnow)
    sell_date = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)
    category = Column(String(64), nullable=True)
    strategy_tag = Column(String(64), nullable=True)
    is_members = Column(Boolean, nullable=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_flips_user_buy_date", "user_id", "buy_date"),
    )

    def to_domain(self) -> Flip:
        return Flip(
            id=self.id,
            user_id=self.user_id,
            item_name=self.item_name,
            item_id=self.item_id,
            item_icon=self.item_icon,
            quantity=self.quantity,
            buy_price=self.buy_price,
            sell_price=self.sell_price,
            buy_date=self.buy_date,
            sell_date=self.sell_date,
            notes=self.notes,
            category=self.category,
            strategy_tag=self.strategy_tag,
            is_members=self.is_members,
            deleted_at=self.deleted_at,
        )


# ---------------------------------------------------------------------------
# Engine / session
# ---------------------------------------------------------------------------

def make_engine(url: Optional[str] = None) -> Engine:
    url = url or config.DATABASE_URL
    if not url.startswith("sqlite"):
        return create_engine(url)

    engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def init_db(engine: Engine) -> None:
    """Create all tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class FlipStore:
    """CRUD over ``FlipRecord`` rows for one database.

    ``session_factory`` is any zero-argument callable returning a
    ``Session`` (normally a ``sessionmaker``).  Missing rows come back as
    ``None`` / ``False``, never as an exception.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "FlipStore":
        engine = make_engine(url)
        init_db(engine)
        return cls(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))

    def _find(self, db: Session, user_id: str, flip_id: str) -> Optional[FlipRecord]:
        return (
            db.query(FlipRecord)
            .filter(FlipRecord.id == flip_id, FlipRecord.user_id == user_id)
            .first()
        )

    def create(self, user_id: str, flip: Flip) -> Flip:
        record = FlipRecord(
            user_id=user_id,
            item_name=flip.item_name,
            item_id=flip.item_id,
            item_icon=flip.item_icon,
            quantity=flip.quantity,
            buy_price=flip.buy_price,
            sell_price=flip.sell_price,
            buy_date=flip.buy_date or _utcnow(),
            sell_date=flip.sell_date,
            notes=flip.notes,
            category=flip.category,
            strategy_tag=flip.strategy_tag,
            is_members=flip.is_members,
        )
        with self._session_factory() as db:
            db.add(record)
            db.commit()
            db.refresh(record)
            logger.debug("Created flip %s for user %s (%s)", record.id, user_id, record.item_name)
            return record.to_domain()

    def list(self, user_id: str, include_deleted: bool = False) -> List[Flip]:
        """A user's flips, newest buy first; tombstoned rows only on request."""
        with self._session_factory() as db:
            query = db.query(FlipRecord).filter(FlipRecord.user_id == user_id)
            if not include_deleted:
                query = query.filter(FlipRecord.deleted_at.is_(None))
            rows = query.order_by(FlipRecord.buy_date.desc()).all()
            return [r.to_domain() for r in rows]

    def get(self, user_id: str, flip_id: str) -> Optional[Flip]:
        with self._session_factory() as db:
            record = self._find(db, user_id, flip_id)
            return record.to_domain() if record else None

    def update(self, user_id: str, flip_id: str, changes: Dict[str, Any]) -> Optional[Flip]:
        """Apply ``changes`` (unknown keys ignored) and return the new state."""
        with self._session_factory() as db:
            record = self._find(db, user_id, flip_id)
            if record is None:
                return None
            for key, value in changes.items():
                if key in UPDATABLE_FIELDS:
                    setattr(record, key, value)
            db.commit()
            db.refresh(record)
            return record.to_domain()

    def soft_delete(self, user_id: str, flip_id: str) -> bool:
        return self._set_tombstone(user_id, flip_id, _utcnow())

    def restore(self, user_id: str, flip_id: str) -> bool:
        return self._set_tombstone(user_id, flip_id, None)

    def _set_tombstone(self, user_id: str, flip_id: str, when: Optional[datetime]) -> bool:
        with self._session_factory() as db:
            record = self._find(db, user_id, flip_id)
            if record is None:
                return False
            record.deleted_at = when
            db.commit()
            return True

    def delete(self, user_id: str, flip_id: str) -> bool:
        """Hard delete; not recoverable."""
        with self._session_factory() as db:
            record = self._find(db, user_id, flip_id)
            if record is None:
                return False
            db.delete(record)
            db.commit()
            logger.info("Hard-deleted flip %s for user %s", flip_id, user_id)
            return True
