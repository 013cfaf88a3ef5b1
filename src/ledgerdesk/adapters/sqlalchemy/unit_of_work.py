"""SQLAlchemy-backed units of work for the ledger.

``startup()`` binds one engine per process, migrates it to the latest schema
and prepares the session factory that every unit of work draws from.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from ledgerdesk.adapters.sqlalchemy.mappings import start_mappers
from ledgerdesk.adapters.sqlalchemy.migrations import upgrade_head
from ledgerdesk.adapters.sqlalchemy.repositories import SqlAlchemyLedgerRepository
from ledgerdesk.config.storage import get_database_uri
from ledgerdesk.domain.ports.unit_of_work import LedgerRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the ledger store is used before ``startup()`` or configured twice."""


class _AdapterState:
    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        # sessions keep their attributes after commit so results stay readable
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    def reset(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._session_factory = None

    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            raise StartupError(
                "Ledger store not initialised. Call ledgerdesk.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the ledger engine and bring its schema up to date."""

    if _STATE.engine is not None and not force:
        raise StartupError("Ledger store already initialised. Pass force=True to reconfigure.")

    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    upgrade_head(engine=resolved_engine)
    _STATE.bind(resolved_engine)
    log.info("Ledger store ready at %s", resolved_engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and forget it (primarily for tests)."""

    _STATE.reset()


class SqlAlchemyLedgerUnitOfWork:
    """One session per ``with`` block; the repository is rebuilt for each session."""

    def __init__(self) -> None:
        self._session_factory = _STATE.session_factory()
        self._session: Session | None = None
        self._repositories: LedgerRepositories | None = None

    def __enter__(self) -> SqlAlchemyLedgerUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already active")
        self._session = self._session_factory()
        self._repositories = LedgerRepositories(
            transactions=SqlAlchemyLedgerRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._session

    @property
    def repositories(self) -> LedgerRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from ledgerdesk.domain.ports.unit_of_work import LedgerUnitOfWork

    _uow_check: LedgerUnitOfWork = SqlAlchemyLedgerUnitOfWork()
