"""Persistence layer for saved calculations.

Each saved calculation is a versioned ``CalculationSnapshot``: the inputs
and the result of one calculator run, in their JSON form. Snapshots are kept
per anonymous user token, newest first, capped at ``max_per_user`` entries.

The store defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from mortgage_calc.errors import InvalidInput

logger = logging.getLogger(__name__)

Base = declarative_base()

SNAPSHOT_SCHEMA_VERSION = 1
SNAPSHOT_KINDS = ("mortgage", "schedule", "extra_payments", "refinance", "rent_vs_buy", "preapproval")
DEFAULT_HISTORY_URL = "sqlite:///calculation_history.sqlite3"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CalculationSnapshot:
    """A saved calculator run.

    ``inputs`` and ``result`` hold the primitive (JSON) form of the records,
    as produced by ``mortgage_calc.serialization.to_primitive``.
    """

    kind: str
    inputs: Dict[str, Any]
    result: Dict[str, Any]
    name: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)
    schema_version: int = SNAPSHOT_SCHEMA_VERSION

    def __post_init__(self) -> None:
        if self.kind not in SNAPSHOT_KINDS:
            raise InvalidInput(f"Unknown calculation kind: {self.kind!r}")
        if self.schema_version != SNAPSHOT_SCHEMA_VERSION:
            raise InvalidInput(f"Unsupported snapshot schema version: {self.schema_version!r}")
        if not isinstance(self.inputs, dict) or not isinstance(self.result, dict):
            raise InvalidInput("Snapshot inputs and result must be objects")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "name": self.name,
            "inputs": self.inputs,
            "result": self.result,
            "created_at": self.created_at.isoformat(),
            "schema_version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalculationSnapshot":
        try:
            created_at = data.get("created_at")
            return cls(
                kind=data["kind"],
                inputs=data["inputs"],
                result=data["result"],
                name=str(data.get("name") or ""),
                id=str(data.get("id") or uuid4().hex),
                created_at=datetime.fromisoformat(created_at) if created_at else _utcnow(),
                schema_version=int(data.get("schema_version", SNAPSHOT_SCHEMA_VERSION)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            if isinstance(exc, InvalidInput):
                raise
            raise InvalidInput(f"Malformed calculation snapshot: {exc}") from exc


class CalculationSnapshotModel(Base):
    __tablename__ = "calculation_history"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False)
    user_token = Column(String(64), index=True, nullable=False)
    kind = Column(String(32), nullable=False)
    name = Column(String(255), nullable=False, default="")
    schema_version = Column(Integer, nullable=False)
    inputs_json = Column(Text, nullable=False)
    result_json = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class CalculationHistoryStore:
    """Database-backed calculation history."""

    def __init__(self, url: str, *, max_per_user: int = 20) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list(self, user_token: str) -> List[CalculationSnapshot]:
        """Return the user's snapshots, newest first."""
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[CalculationSnapshotModel] = session.execute(
                select(CalculationSnapshotModel)
                .where(CalculationSnapshotModel.user_token == user_token)
                .order_by(CalculationSnapshotModel.seq.desc())
            ).scalars()
            return [self._to_snapshot(row) for row in rows]

    def load(self, user_token: str, snapshot_id: str) -> Optional[CalculationSnapshot]:
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.execute(
                select(CalculationSnapshotModel).where(CalculationSnapshotModel.id == snapshot_id)
            ).scalar_one_or_none()
            if row is None or row.user_token != user_token:
                return None
            return self._to_snapshot(row)

    def save(self, user_token: str, snapshot: CalculationSnapshot) -> None:
        if not user_token:
            return
        payload = CalculationSnapshotModel(
            id=snapshot.id,
            user_token=user_token,
            kind=snapshot.kind,
            name=snapshot.name,
            schema_version=snapshot.schema_version,
            inputs_json=json.dumps(snapshot.inputs),
            result_json=json.dumps(snapshot.result),
            created_at=_as_utc(snapshot.created_at),
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        logger.info("Saved %s calculation %s", snapshot.kind, snapshot.id)
        self._trim_user(user_token)

    def delete(self, user_token: str, snapshot_id: str) -> bool:
        if not user_token:
            return False
        with self._session_factory() as session:
            row = session.execute(
                select(CalculationSnapshotModel).where(CalculationSnapshotModel.id == snapshot_id)
            ).scalar_one_or_none()
            if row is None or row.user_token != user_token:
                return False
            session.delete(row)
            session.commit()
            return True

    def clear(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                CalculationSnapshotModel.__table__.delete().where(
                    CalculationSnapshotModel.user_token == user_token
                )
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(CalculationSnapshotModel)
                .where(CalculationSnapshotModel.user_token == user_token)
                .order_by(CalculationSnapshotModel.seq.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()
            logger.info("Trimmed %d old calculations", len(rows) - self._max_per_user)

    @staticmethod
    def _to_snapshot(row: CalculationSnapshotModel) -> CalculationSnapshot:
        return CalculationSnapshot(
            kind=row.kind,
            inputs=json.loads(row.inputs_json),
            result=json.loads(row.result_json),
            name=row.name,
            id=row.id,
            # SQLite drops the offset; rows are always written in UTC
            created_at=_as_utc(row.created_at),
            schema_version=row.schema_version,
        )


def create_store_from_env(url: Optional[str]) -> CalculationHistoryStore:
    return CalculationHistoryStore(url or DEFAULT_HISTORY_URL)
