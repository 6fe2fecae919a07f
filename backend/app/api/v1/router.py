from fastapi import APIRouter, Depends

from app.api.v1.endpoints import (
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
from app.modules.auth.dependencies import enforce_maintenance_mode

# Health and the websocket stay outside the maintenance switch
api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(messaging.ws_router)

guarded = APIRouter(dependencies=[Depends(enforce_maintenance_mode)])
guarded.include_router(auth.router)
guarded.include_router(users.router)
guarded.include_router(posts.router)
guarded.include_router(network.router)
guarded.include_router(jobs.router)
guarded.include_router(events.router)
guarded.include_router(articles.router)
guarded.include_router(pitches.router)
guarded.include_router(messaging.router)
guarded.include_router(notifications.router)
guarded.include_router(search.router)
guarded.include_router(admin.router)

api_router.include_router(guarded)
