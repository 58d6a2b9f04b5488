"""Persistence layer for saved loan scenarios.

The web app lets a visitor save a calculated loan (and its optional
prepayment simulation) so several scenarios can be compared side by side.
Scenarios are kept in a database keyed by an anonymous per-session token.
Any SQLAlchemy-compatible URL works; SQLite is the default for local use.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoanScenarioModel(Base):
    __tablename__ = "loan_scenarios"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scenario_id = Column(String(64), unique=True, nullable=False)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    principal = Column(String(64), nullable=False)
    annual_rate_percent = Column(String(64), nullable=False)
    term_periods = Column(Integer, nullable=False)
    summary_json = Column(Text, nullable=False)
    prepayment_json = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ComparisonStore:
    """Database-backed scenario store.

    Only the newest ``max_per_user`` scenarios are kept for each token; a
    non-positive limit disables trimming.
    """

    def __init__(self, url: str, *, max_per_user: int = 10) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_scenarios(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[LoanScenarioModel] = session.execute(
                select(LoanScenarioModel)
                .where(LoanScenarioModel.user_token == user_token)
                .order_by(LoanScenarioModel.id.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def add_scenario(
        self,
        user_token: str,
        scenario_id: str,
        name: str,
        loan: Dict[str, Any],
        summary: Dict[str, Any],
        prepayment: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Save a scenario; ``loan`` holds the principal, rate and term inputs."""
        if not user_token:
            return
        payload = LoanScenarioModel(
            scenario_id=scenario_id,
            user_token=user_token,
            name=name,
            principal=str(loan["principal"]),
            annual_rate_percent=str(loan["annual_rate_percent"]),
            term_periods=int(loan["term_periods"]),
            summary_json=json.dumps(summary),
            prepayment_json=json.dumps(prepayment) if prepayment is not None else None,
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        logger.info("Saved scenario %s (%s)", scenario_id, name)
        self._trim_user(user_token)

    def remove_scenario(self, user_token: str, scenario_id: str) -> None:
        if not user_token or not scenario_id:
            return
        with self._session_factory() as session:
            row = session.execute(
                select(LoanScenarioModel).where(LoanScenarioModel.scenario_id == scenario_id)
            ).scalar_one_or_none()
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()

    def clear_scenarios(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                LoanScenarioModel.__table__.delete().where(
                    LoanScenarioModel.user_token == user_token
                )
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(LoanScenarioModel)
                .where(LoanScenarioModel.user_token == user_token)
                .order_by(LoanScenarioModel.id.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()

    @staticmethod
    def _to_dict(row: LoanScenarioModel) -> Dict[str, Any]:
        return {
            "id": row.scenario_id,
            "name": row.name,
            "loan": {
                "principal": row.principal,
                "annual_rate_percent": row.annual_rate_percent,
                "term_periods": row.term_periods,
            },
            "summary": json.loads(row.summary_json),
            "prepayment": json.loads(row.prepayment_json) if row.prepayment_json else None,
            "created_at": row.created_at.isoformat(),
        }


def create_store(url: Optional[str], *, max_per_user: int = 10) -> ComparisonStore:
    return ComparisonStore(url or "sqlite:///comparison_data.sqlite3", max_per_user=max_per_user)
