"""
Configuration row sources for the publisher.

``SqlRowSource`` reads the four ordered row sets from the relational
configuration store with SQLAlchemy.  ``StaticRowSource`` serves fixed
rows for tests and offline runs.

Usage::

    from cfgsnap.distribution.sources import SqlRowSource, make_engine

    rows = SqlRowSource(make_engine("postgresql+psycopg://ctc@db/ctc"))
    instruments = rows.fetch_instruments()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cfgsnap.errors import RowFetchError
from cfgsnap.timeouts import DB_CONNECT_TIMEOUT_S

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

INSTRUMENTS_SQL = (
    "select id, symbol, type, coalesce(currency, 'USD') as currency, "
    "tick_size_nanos, tick_size_ticks, lot_size_lots, meta "
    "from instruments order by id"
)
ETF_COMPONENTS_SQL = (
    "select etf_instrument_id, component_instrument_id, weight_num, weight_den "
    "from etf_components order by 1, 2"
)
OPTIONS_SQL = (
    'select instrument_id, underlying_instrument_id, strike_ticks, "right", '
    "expiry, multiplier from options_meta order by instrument_id"
)
RISK_LIMITS_SQL = (
    "select team_id, instrument_id, pos_min_lots, pos_max_lots, "
    "notional_max_ticks, max_orders_per_sec from risk_limits order by 1, 2"
)


class RowSource(Protocol):
    """Ordered configuration rows, one method per snapshot list."""

    def fetch_instruments(self) -> List[Row]: ...

    def fetch_etf_components(self) -> List[Row]: ...

    def fetch_options(self) -> List[Row]: ...

    def fetch_risk_limits(self) -> List[Row]: ...


def make_engine(url: str, connect_timeout_s: int = DB_CONNECT_TIMEOUT_S) -> Engine:
    """Create an engine with a driver-level connect timeout."""
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": connect_timeout_s}
    elif url.startswith("postgresql"):
        connect_args = {"connect_timeout": connect_timeout_s}
    else:
        connect_args = {}
    return create_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)


class SqlRowSource:
    """Row source backed by the relational configuration store."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def _query(self, sql: str, what: str) -> List[Row]:
        try:
            with self._engine.connect() as conn:
                result = conn.execute(text(sql))
                rows = [dict(row._mapping) for row in result]
        except SQLAlchemyError as exc:
            raise RowFetchError(f"Failed to load {what}: {exc}") from exc
        logger.debug("Loaded %d %s row(s)", len(rows), what)
        return rows

    def fetch_instruments(self) -> List[Row]:
        return self._query(INSTRUMENTS_SQL, "instruments")

    def fetch_etf_components(self) -> List[Row]:
        return self._query(ETF_COMPONENTS_SQL, "etf_components")

    def fetch_options(self) -> List[Row]:
        return self._query(OPTIONS_SQL, "options_meta")

    def fetch_risk_limits(self) -> List[Row]:
        return self._query(RISK_LIMITS_SQL, "risk_limits")


class StaticRowSource:
    """Serves copies of fixed row lists."""

    def __init__(
        self,
        instruments: Optional[Sequence[Row]] = None,
        etf_components: Optional[Sequence[Row]] = None,
        options: Optional[Sequence[Row]] = None,
        risk_limits: Optional[Sequence[Row]] = None,
    ):
        self.instruments = list(instruments or [])
        self.etf_components = list(etf_components or [])
        self.options = list(options or [])
        self.risk_limits = list(risk_limits or [])

    def fetch_instruments(self) -> List[Row]:
        return [dict(r) for r in self.instruments]

    def fetch_etf_components(self) -> List[Row]:
        return [dict(r) for r in self.etf_components]

    def fetch_options(self) -> List[Row]:
        return [dict(r) for r in self.options]

    def fetch_risk_limits(self) -> List[Row]:
        return [dict(r) for r in self.risk_limits]
