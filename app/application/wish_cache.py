"""
Garden feed cache and the "water wish" flow.

The cache is per process. Each key (sort order, category, search term) keeps
the rows of the pages fetched so far, in order, and when they were fetched.
A page that is already held and still fresh is served by slicing; anything
else goes to the database and extends the entry when it is the next page.
Watering a wish changes counts and ordering, so it drops the whole cache.
"""
import logging
import threading
import time
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.wishes import get_profiles, profile_snippet, serialize_wish
from app.application.xp import XpService
from app.config import get_settings
from app.domain.wish import SORT_NEWEST, SORT_MOST_WATERED, SORT_ORDERS, validate_category
from app.domain.xp import WATER_SUPPORTER_XP, WATER_OWNER_XP
from app.errors import ValidationError
from app.infrastructure.db.models import Wish, WishSupport

logger = logging.getLogger(__name__)

CACHE_PAGE_SIZE = 50

CacheKey = tuple[str, Optional[str], Optional[str]]


@dataclass
class _Entry:
    rows: list = field(default_factory=list)
    pages_loaded: int = 0
    complete: bool = False  # last loaded page was short
    filled_at: float = 0.0


class WishCache:
    def __init__(
        self,
        ttl_seconds: float | None = None,
        page_size: int = CACHE_PAGE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = get_settings().WISH_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.page_size = page_size
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self._lock = threading.Lock()
        self._generation = 0  # bumped by invalidate()
        self.hits = 0
        self.misses = 0

    def _fresh(self, entry: _Entry | None) -> bool:
        return entry is not None and self._clock() - entry.filled_at < self.ttl_seconds

    def get_page(self, key: CacheKey, page: int, loader: Callable[[int], list]) -> list:
        """
        Return one page for ``key``, calling ``loader(page)`` on a miss.
        """
        if page < 1:
            raise ValidationError("page must be >= 1")

        with self._lock:
            entry = self._entries.get(key)
            if self._fresh(entry):
                if page <= entry.pages_loaded:
                    self.hits += 1
                    start = (page - 1) * self.page_size
                    return list(entry.rows[start:start + self.page_size])
                if entry.complete:
                    self.hits += 1
                    return []
            self.misses += 1
            generation = self._generation

        rows = loader(page)

        with self._lock:
            if generation != self._generation:
                # Invalidated while loading; the rows may predate that write
                return list(rows)
            entry = self._entries.get(key)
            if not self._fresh(entry):
                entry = None
                self._entries.pop(key, None)

            if entry is None and page == 1:
                entry = _Entry(filled_at=self._clock())
                self._entries[key] = entry
            if entry is not None and entry.pages_loaded == page - 1:
                entry.rows.extend(rows)
                entry.pages_loaded = page
                entry.complete = len(rows) < self.page_size
        return list(rows)

    def invalidate(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generation += 1
        logger.debug("Wish cache invalidated")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


wish_cache = WishCache()


def _make_key(sort_order: str, category: str | None, search_term: str | None) -> CacheKey:
    if sort_order not in SORT_ORDERS:
        raise ValidationError(f"Sort order must be one of {', '.join(SORT_ORDERS)}")
    if category:
        validate_category(category)
    term = (search_term or "").strip().lower()
    return sort_order, category or None, term or None


def _query_page(db: Session, key: CacheKey, page: int, page_size: int) -> list[dict]:
    sort_order, category, term = key
    query = db.query(Wish).filter(Wish.is_private.is_(False), Wish.is_visible.is_(True))
    if category:
        query = query.filter(Wish.category == category)
    if term:
        query = query.filter(func.lower(Wish.wish_text).contains(term, autoescape=True))

    if sort_order == SORT_MOST_WATERED:
        query = query.order_by(Wish.support_count.desc(), Wish.created_at.desc(), Wish.id)
    else:
        query = query.order_by(Wish.created_at.desc(), Wish.id)

    wishes = query.offset((page - 1) * page_size).limit(page_size).all()
    owners = get_profiles(db, [w.user_id for w in wishes])

    rows = []
    for wish in wishes:
        data = serialize_wish(wish)
        data["user_profile"] = profile_snippet(owners.get(wish.user_id))
        rows.append(data)
    return rows


def fetch_wishes(
    db: Session,
    user_id: str | None,
    sort_order: str = SORT_NEWEST,
    category: str | None = None,
    search_term: str | None = None,
    page: int = 1,
    cache: WishCache | None = None,
) -> list[dict]:
    """One page of public wishes for the garden; signed-out visitors get nothing."""
    if not user_id:
        return []
    if cache is None:
        cache = wish_cache
    key = _make_key(sort_order, category, search_term)
    return cache.get_page(key, page, lambda p: _query_page(db, key, p, cache.page_size))


def fetch_all_wishes(
    db: Session,
    user_id: str | None,
    sort_order: str = SORT_NEWEST,
    category: str | None = None,
    search_term: str | None = None,
    cache: WishCache | None = None,
) -> list[dict]:
    if cache is None:
        cache = wish_cache
    result = []
    page = 1
    while True:
        rows = fetch_wishes(db, user_id, sort_order, category, search_term, page, cache)
        result.extend(rows)
        if len(rows) < cache.page_size:
            return result
        page += 1


@dataclass
class WaterResult:
    success: bool
    user_xp: int | None = None
    user_level: int | None = None
    creator_xp: int | None = None
    creator_level: int | None = None
    wish: dict | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def _already_watered(db: Session, user_id: str, wish_id: str) -> bool:
    return db.query(WishSupport.id).filter(
        WishSupport.user_id == user_id,
        WishSupport.wish_id == wish_id,
    ).first() is not None


def water_wish(db: Session, user_id: str, wish_id: str, cache: WishCache | None = None) -> WaterResult:
    """
    Support a wish once: +1 support, XP to the supporter and to the owner.

    Watering twice is not an error, it just reports ``success=False``.
    Everything happens in one transaction.
    """
    if cache is None:
        cache = wish_cache
    try:
        if _already_watered(db, user_id, wish_id):
            return WaterResult(success=False)

        wish = db.query(Wish).filter(Wish.id == wish_id).first()
        if not wish:
            return WaterResult(success=False, error="Wish not found")
        owner_id = wish.user_id

        db.add(WishSupport(user_id=user_id, wish_id=wish_id))
        db.flush()
        wish.support_count = Wish.support_count + 1
        db.flush()

        xp = XpService(db)
        user_xp, user_level = xp.award(user_id, WATER_SUPPORTER_XP)
        creator_xp, creator_level = xp.award(owner_id, WATER_OWNER_XP)
        db.commit()
    except IntegrityError:
        # Concurrent water by the same user hit the unique constraint
        db.rollback()
        return WaterResult(success=False)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to water wish {wish_id} for user {user_id}: {str(e)}")
        return WaterResult(success=False, error=str(e))

    cache.invalidate()
    db.refresh(wish)
    return WaterResult(
        success=True,
        user_xp=user_xp,
        user_level=user_level,
        creator_xp=creator_xp,
        creator_level=creator_level,
        wish=serialize_wish(wish),
    )
