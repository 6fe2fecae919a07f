# API endpoints
from . import (
    auth,
    users,
    posts,
    network,
    jobs,
    events,
    articles,
    pitches,
    messaging,
    notifications,
    search,
    admin,
    health,
)

__all__ = [
    "auth", "users", "posts", "network", "jobs", "events", "articles",
    "pitches", "messaging", "notifications", "search", "admin", "health",
]
