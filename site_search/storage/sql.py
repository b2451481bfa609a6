# site_search/storage/sql.py
"""
SQLAlchemy-backed storage (SQLite by default, any SQLAlchemy URL works).

Each operation runs in its own short session; :meth:`SqlStorage.transaction`
serializes lemma/index write groups and runs each group in one session.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import (
    TIMESTAMP,
    Column,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from site_search.errors import DuplicateIndexError
from site_search.models import Index, Lemma, Page, Site, SiteStatus
from site_search.storage.base import Storage

Base = declarative_base()


class SiteRow(Base):
    __tablename__ = "site"
    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(Enum(SiteStatus), nullable=False)
    status_time = Column(TIMESTAMP, nullable=False)
    last_error = Column(Text)
    url = Column(String(500), nullable=False, unique=True)
    name = Column(String(500), nullable=False)


class PageRow(Base):
    __tablename__ = "page"
    __table_args__ = (UniqueConstraint("site_id", "path", name="uq_page_site_path"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(Integer, ForeignKey("site.id"), nullable=False, index=True)
    path = Column(String(500), nullable=False, index=True)
    code = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    content_type = Column(String(500))


class LemmaRow(Base):
    __tablename__ = "lemma"
    __table_args__ = (UniqueConstraint("lemma", "site_id", name="idx_lemma_site"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(Integer, ForeignKey("site.id"), nullable=False, index=True)
    lemma = Column(String(500), nullable=False, index=True)
    frequency = Column(Integer, nullable=False, default=1)


class IndexRow(Base):
    __tablename__ = "index"
    __table_args__ = (UniqueConstraint("page_id", "lemma_id", name="uq_index_page_lemma"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    page_id = Column(Integer, ForeignKey("page.id"), nullable=False, index=True)
    lemma_id = Column(Integer, ForeignKey("lemma.id"), nullable=False, index=True)
    rank = Column(Float, nullable=False)


def _site(row: SiteRow) -> Site:
    return Site(
        id=row.id,
        url=row.url,
        name=row.name,
        status=row.status,
        status_time=row.status_time,
        last_error=row.last_error,
    )


def _page(row: PageRow) -> Page:
    return Page(
        id=row.id,
        site_id=row.site_id,
        path=row.path,
        code=row.code,
        content=row.content,
        content_type=row.content_type,
    )


def _lemma(row: LemmaRow) -> Lemma:
    return Lemma(id=row.id, site_id=row.site_id, lemma=row.lemma, frequency=row.frequency)


def _index(row: IndexRow) -> Index:
    return Index(id=row.id, page_id=row.page_id, lemma_id=row.lemma_id, rank=row.rank)


class SqlStorage(Storage):
    """Relational :class:`Storage`; creates its tables on first use.

    Outside :meth:`transaction` every operation runs in its own short session
    and commits at once. Inside it, operations of the owning thread share one
    session that commits when the block exits and rolls back if it raises.
    """

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, echo=echo, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self._session = sessionmaker(self.engine, expire_on_commit=False)
        self._lock = threading.RLock()
        self._local = threading.local()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._current() is not None:
                yield
                return
            with self._session() as session:
                self._local.session = session
                try:
                    yield
                    session.commit()
                except BaseException:
                    session.rollback()
                    raise
                finally:
                    self._local.session = None

    def close(self) -> None:
        self.engine.dispose()

    def _current(self) -> Optional[Session]:
        return getattr(self._local, "session", None)

    @contextmanager
    def _scope(self) -> Iterator[Session]:
        """Session of the enclosing transaction, or a fresh one closed on exit."""
        shared = self._current()
        if shared is not None:
            yield shared
            return
        with self._session() as session:
            yield session

    def _commit(self, session: Session) -> None:
        if session is self._current():
            session.flush()
        else:
            session.commit()

    def _add(self, row, error: Exception):
        """Insert *row*; a constraint violation rolls back and raises *error*."""
        with self._scope() as session:
            session.add(row)
            try:
                self._commit(session)
            except IntegrityError as exc:
                # inside a transaction this discards the whole block
                session.rollback()
                raise error from exc
            return row.id

    def _delete(self, stmt) -> int:
        with self._scope() as session:
            result = session.execute(stmt)
            self._commit(session)
            return result.rowcount or 0

    # -- sites -------------------------------------------------------------

    def create_site(self, site: Site) -> Site:
        row = SiteRow(
            url=site.url,
            name=site.name,
            status=site.status,
            status_time=site.status_time,
            last_error=site.last_error,
        )
        site.id = self._add(row, ValueError(f"Site already exists: {site.url}"))
        return site

    def get_site(self, site_id: int) -> Optional[Site]:
        with self._scope() as session:
            row = session.get(SiteRow, site_id)
            return _site(row) if row else None

    def find_site_by_url(self, url: str) -> Optional[Site]:
        with self._scope() as session:
            row = session.scalars(select(SiteRow).where(SiteRow.url == url)).first()
            return _site(row) if row else None

    def update_site(self, site: Site) -> Site:
        with self._scope() as session:
            row = session.get(SiteRow, site.id)
            if row is None:
                raise KeyError(f"Unknown site id {site.id}")
            row.status = site.status
            row.status_time = site.status_time
            row.last_error = site.last_error
            row.name = site.name
            self._commit(session)
        return site

    def delete_site(self, site_id: int) -> None:
        self._delete(delete(SiteRow).where(SiteRow.id == site_id))

    def list_sites(self) -> List[Site]:
        with self._scope() as session:
            return [_site(r) for r in session.scalars(select(SiteRow).order_by(SiteRow.id))]

    # -- pages -------------------------------------------------------------

    def create_page(self, page: Page) -> Page:
        row = PageRow(
            site_id=page.site_id,
            path=page.path,
            code=page.code,
            content=page.content,
            content_type=page.content_type,
        )
        page.id = self._add(row, ValueError(f"Page already exists: {page.path}"))
        return page

    def get_page(self, page_id: int) -> Optional[Page]:
        with self._scope() as session:
            row = session.get(PageRow, page_id)
            return _page(row) if row else None

    def page_exists(self, site_id: int, path: str) -> bool:
        stmt = select(PageRow.id).where(PageRow.site_id == site_id, PageRow.path == path)
        with self._scope() as session:
            return session.scalars(stmt.limit(1)).first() is not None

    def count_pages(self, site_id: int) -> int:
        stmt = select(func.count(PageRow.id)).where(PageRow.site_id == site_id)
        with self._scope() as session:
            return session.scalar(stmt) or 0

    def find_pages_by_lemmas(
        self, lemmas: Sequence[str], site_url: Optional[str] = None
    ) -> List[Page]:
        if not lemmas:
            return []
        page_ids = (
            select(IndexRow.page_id)
            .join(LemmaRow, LemmaRow.id == IndexRow.lemma_id)
            .where(LemmaRow.lemma.in_(list(lemmas)))
        )
        stmt = select(PageRow).where(PageRow.id.in_(page_ids))
        if site_url is not None:
            stmt = stmt.join(SiteRow, SiteRow.id == PageRow.site_id).where(SiteRow.url == site_url)
        with self._scope() as session:
            return [_page(r) for r in session.scalars(stmt.order_by(PageRow.id))]

    def delete_pages_by_site(self, site_id: int) -> int:
        return self._delete(delete(PageRow).where(PageRow.site_id == site_id))

    # -- lemmas ------------------------------------------------------------

    def find_lemma(self, lemma: str, site_id: int) -> Optional[Lemma]:
        stmt = select(LemmaRow).where(LemmaRow.lemma == lemma, LemmaRow.site_id == site_id)
        with self._scope() as session:
            row = session.scalars(stmt).first()
            return _lemma(row) if row else None

    def find_lemmas_by_text(self, lemma: str) -> List[Lemma]:
        with self._scope() as session:
            return [_lemma(r) for r in session.scalars(select(LemmaRow).where(LemmaRow.lemma == lemma))]

    def count_lemmas(self, site_id: int) -> int:
        stmt = select(func.count(LemmaRow.id)).where(LemmaRow.site_id == site_id)
        with self._scope() as session:
            return session.scalar(stmt) or 0

    def create_lemma(self, lemma: Lemma) -> Lemma:
        row = LemmaRow(site_id=lemma.site_id, lemma=lemma.lemma, frequency=lemma.frequency)
        lemma.id = self._add(row, ValueError(f"Lemma already exists: {lemma.lemma}"))
        return lemma

    def update_lemma(self, lemma: Lemma) -> Lemma:
        with self._scope() as session:
            row = session.get(LemmaRow, lemma.id)
            if row is None:
                raise KeyError(f"Unknown lemma id {lemma.id}")
            row.frequency = lemma.frequency
            self._commit(session)
        return lemma

    def delete_lemmas_by_site(self, site_id: int) -> int:
        return self._delete(delete(LemmaRow).where(LemmaRow.site_id == site_id))

    # -- index -------------------------------------------------------------

    def create_index(self, index: Index) -> Index:
        row = IndexRow(page_id=index.page_id, lemma_id=index.lemma_id, rank=index.rank)
        index.id = self._add(row, DuplicateIndexError(index.page_id, index.lemma_id))
        return index

    def find_index(self, lemma_id: int, page_id: int) -> Optional[Index]:
        stmt = select(IndexRow).where(IndexRow.lemma_id == lemma_id, IndexRow.page_id == page_id)
        with self._scope() as session:
            row = session.scalars(stmt).first()
            return _index(row) if row else None

    def delete_index_by_site(self, site_id: int) -> int:
        site_pages = select(PageRow.id).where(PageRow.site_id == site_id)
        return self._delete(delete(IndexRow).where(IndexRow.page_id.in_(site_pages)))


__all__ = ["SqlStorage", "Base"]
