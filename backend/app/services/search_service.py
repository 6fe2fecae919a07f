"""
Search Service - global search across members, jobs, events, resources,
pitches and posts.

Matching is a case-insensitive substring test. Hits are ranked by where the
query matched:

    exact title   100
    title prefix   75
    title contains 50
    body only      25
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.article import Article
from app.models.event import Event
from app.models.job import Job
from app.models.pitch import Pitch
from app.models.post import Post
from app.models.user import User
from app.utils.text_search import contains, contains_any

SCORE_EXACT = 100
SCORE_PREFIX = 75
SCORE_TITLE = 50
SCORE_BODY = 25

SEARCH_TYPES = ("user", "job", "event", "article", "pitch", "post")
MAX_SUGGESTIONS = 8
# Rows fetched per type before ranking trims to the per-type limit
CANDIDATE_MULTIPLIER = 4
POST_TITLE_LENGTH = 60


def score_match(query: str, title: Optional[str], body: Iterable[Optional[str]] = ()) -> int:
    """Rank how well query matches a title and its secondary text. 0 means no match."""
    q = (query or "").strip().lower()
    if not q:
        return 0
    t = (title or "").strip().lower()
    if t == q:
        return SCORE_EXACT
    if t.startswith(q):
        return SCORE_PREFIX
    if q in t:
        return SCORE_TITLE
    for text in body:
        if text and q in text.lower():
            return SCORE_BODY
    return 0


def parse_types(types: Optional[Sequence[str]]) -> List[str]:
    """Accept ['job', 'event'] or ['job,event']; empty means every type"""
    if not types:
        return list(SEARCH_TYPES)
    wanted = []
    for item in types:
        for part in str(item).split(","):
            part = part.strip().lower()
            if not part:
                continue
            if part not in SEARCH_TYPES:
                raise ValidationError(f"Unknown search type '{part}'", field="types")
            if part not in wanted:
                wanted.append(part)
    return wanted or list(SEARCH_TYPES)


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _post_title(content: str) -> str:
    first_line = (content or "").strip().splitlines()[0] if (content or "").strip() else ""
    if len(first_line) <= POST_TITLE_LENGTH:
        return first_line
    return first_line[:POST_TITLE_LENGTH - 3] + "..."


def _rank(hits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Best score first, newest first within a score"""
    by_date = sorted(hits, key=lambda h: h["date"] or datetime.min, reverse=True)
    return sorted(by_date, key=lambda h: -h["score"])


class SearchService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fetch(self, query, limit: int) -> list:
        result = await self.db.execute(query.limit(limit * CANDIDATE_MULTIPLIER))
        return list(result.scalars().unique().all())

    async def _users(self, q: str, limit: int) -> List[Dict[str, Any]]:
        rows = await self._fetch(
            select(User)
            .where(User.is_active.is_(True), contains_any(q, User.name, User.username, User.title, User.company, User.location))
            .order_by(User.created_at.desc()),
            limit,
        )
        return [
            {
                "id": str(u.id),
                "type": "user",
                "title": u.name,
                "description": " at ".join(p for p in (u.title, u.company) if p) or u.location,
                "url": f"/profile/{u.id}",
                "image_url": u.avatar_url,
                "tags": [u.role.value] if u.role else [],
                "date": u.created_at,
                "score": score_match(q, u.name, (u.username, u.title, u.company, u.location)),
            }
            for u in rows
        ]

    async def _jobs(self, q: str, limit: int) -> List[Dict[str, Any]]:
        rows = await self._fetch(
            select(Job)
            .where(Job.is_active.is_(True), contains_any(q, Job.title, Job.company, Job.description, Job.skills, Job.location))
            .order_by(Job.created_at.desc()),
            limit,
        )
        return [
            {
                "id": str(j.id),
                "type": "job",
                "title": j.title,
                "description": f"{j.company} · {j.location}",
                "url": f"/jobs/{j.id}",
                "image_url": j.logo,
                "tags": j.skill_list,
                "date": j.created_at,
                "score": score_match(q, j.title, (j.company, j.skills, j.description, j.location)),
            }
            for j in rows
            if j.is_open()
        ]

    async def _events(self, q: str, limit: int) -> List[Dict[str, Any]]:
        rows = await self._fetch(
            select(Event)
            .where(contains_any(q, Event.title, Event.description, Event.location, Event.category))
            .order_by(Event.start_date.desc()),
            limit,
        )
        return [
            {
                "id": str(e.id),
                "type": "event",
                "title": e.title,
                "description": "Virtual event" if e.is_virtual else e.location,
                "url": f"/events/{e.id}",
                "image_url": e.image_url,
                "tags": [e.category] if e.category else [],
                "date": e.start_date,
                "score": score_match(q, e.title, (e.category, e.location, e.description)),
            }
            for e in rows
        ]

    async def _articles(self, q: str, limit: int) -> List[Dict[str, Any]]:
        rows = await self._fetch(
            select(Article)
            .where(Article.is_published.is_(True), contains_any(q, Article.title, Article.summary, Article.content, Article.tags))
            .order_by(Article.created_at.desc()),
            limit,
        )
        return [
            {
                "id": str(a.id),
                "type": "article",
                "title": a.title,
                "description": a.summary,
                "url": f"/resources/{a.id}",
                "image_url": a.image_url,
                "tags": a.tag_list,
                "date": a.created_at,
                "score": score_match(q, a.title, (a.tags, a.summary, a.content)),
            }
            for a in rows
        ]

    async def _pitches(self, q: str, limit: int) -> List[Dict[str, Any]]:
        rows = await self._fetch(
            select(Pitch)
            .where(contains_any(q, Pitch.name, Pitch.description, Pitch.category, Pitch.location))
            .order_by(Pitch.created_at.desc()),
            limit,
        )
        return [
            {
                "id": str(p.id),
                "type": "pitch",
                "title": p.name,
                "description": p.description,
                "url": f"/pitch-room/{p.id}",
                "image_url": p.logo,
                "tags": [t for t in (p.category, p.status.value if p.status else None) if t],
                "date": p.created_at,
                "score": score_match(q, p.name, (p.category, p.location, p.description)),
            }
            for p in rows
        ]

    async def _posts(self, q: str, limit: int) -> List[Dict[str, Any]]:
        rows = await self._fetch(
            select(Post)
            .join(User, User.id == Post.user_id)
            .where(User.is_active.is_(True), contains_any(q, Post.content))
            .order_by(Post.created_at.desc()),
            limit,
        )
        return [
            {
                "id": str(p.id),
                "type": "post",
                "title": _post_title(p.content) or f"Post by {p.author.name}",
                "description": p.author.name,
                "url": f"/posts/{p.id}",
                "image_url": p.media_url,
                "tags": [],
                "date": p.created_at,
                "score": score_match(q, _post_title(p.content), (p.content,)),
            }
            for p in rows
        ]

    async def search(
        self,
        query: str,
        types: Optional[Sequence[str]] = None,
        limit_per_type: Optional[int] = None
    ) -> Dict[str, Any]:
        q = (query or "").strip()
        wanted = parse_types(types)
        if len(q) < settings.SEARCH_MIN_QUERY_LENGTH:
            return {"query": q, "total": 0, "results": [], "counts": {}}

        limit = limit_per_type or settings.SEARCH_RESULTS_PER_TYPE
        finders = {
            "user": self._users,
            "job": self._jobs,
            "event": self._events,
            "article": self._articles,
            "pitch": self._pitches,
            "post": self._posts,
        }

        results: List[Dict[str, Any]] = []
        counts: Dict[str, int] = {}
        for search_type in wanted:
            hits = [h for h in await finders[search_type](q, limit) if h["score"] > 0]
            hits = _rank(hits)[:limit]
            counts[search_type] = len(hits)
            results.extend(hits)

        results = _rank(results)
        return {"query": q, "total": len(results), "results": results, "counts": counts}

    async def suggest(self, query: str) -> List[str]:
        """Up to eight distinct titles that complete what has been typed so far"""
        q = (query or "").strip()
        if len(q) < settings.SEARCH_MIN_QUERY_LENGTH:
            return []
        sources = (
            (User.name, User.is_active.is_(True)),
            (Job.title, Job.is_active.is_(True)),
            (Event.title, None),
            (Article.title, Article.is_published.is_(True)),
            (Pitch.name, None),
        )
        candidates = []
        for column, condition in sources:
            stmt = select(column).where(contains(column, q))
            if condition is not None:
                stmt = stmt.where(condition)
            result = await self.db.execute(stmt.distinct().limit(MAX_SUGGESTIONS * 2))
            candidates.extend(r[0] for r in result.all() if r[0])

        ranked = sorted(candidates, key=lambda title: (-score_match(q, title), len(title), title.lower()))
        suggestions: List[str] = []
        seen = set()
        for title in ranked:
            key = title.lower()
            if key in seen:
                continue
            seen.add(key)
            suggestions.append(title)
            if len(suggestions) == MAX_SUGGESTIONS:
                break
        return suggestions
