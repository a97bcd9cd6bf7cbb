from typing import Any

from fastapi import BackgroundTasks, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from telecleaner.api.dependencies import GatewayDep, HandlerDep, StoreDep, lifespan
from telecleaner.config import settings
from telecleaner.dto import (
    CacheStatsResponse,
    ChatListResponse,
    DeleteMessagesRequest,
    DeletionResponse,
    HealthCheckResponse,
    RefreshResponse,
    SaveSessionRequest,
    SelectionRequest,
    SelectionResponse,
    SessionStatusResponse,
)

app = FastAPI(
    title="TeleCleaner API",
    description="Chat list hydration, avatar caching and bulk message deletion",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "TeleCleaner API",
        "version": "0.1.0",
        "description": "Chat list hydration, avatar caching and bulk message deletion",
        "endpoints": {
            "chats": "/chats",
            "session": "/session",
            "messages": "/messages/delete",
            "cache": "/cache/stats",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(store: StoreDep, gateway: GatewayDep) -> HealthCheckResponse:
    """Health check endpoint."""
    store_healthy = await store.health_check()
    gateway_healthy = await gateway.is_available()
    return HealthCheckResponse(
        status="healthy" if store_healthy else "unhealthy",
        store_healthy=store_healthy,
        gateway_healthy=gateway_healthy,
    )


@app.get("/session", response_model=SessionStatusResponse)
async def session_status(handler: HandlerDep) -> SessionStatusResponse:
    """Report whether a complete session is stored."""
    return await handler.session_status()


@app.post("/session", response_model=SessionStatusResponse)
async def save_session(request: SaveSessionRequest, handler: HandlerDep) -> SessionStatusResponse:
    """Persist the session obtained at sign-in."""
    return await handler.save_session(request)


@app.delete("/session", response_model=SessionStatusResponse)
async def clear_session(handler: HandlerDep) -> SessionStatusResponse:
    """Log out: forget session and token."""
    return await handler.clear_session()


@app.get("/chats", response_model=ChatListResponse)
async def list_chats(handler: HandlerDep, background_tasks: BackgroundTasks) -> ChatListResponse:
    """Current chat list snapshot; the first call starts hydration."""
    return await handler.list_chats(background_tasks)


@app.post("/chats/refresh", response_model=RefreshResponse, status_code=status.HTTP_202_ACCEPTED)
async def refresh_chats(handler: HandlerDep, background_tasks: BackgroundTasks) -> RefreshResponse:
    """Re-run hydration in the background (ignored while one is running)."""
    return await handler.refresh_chats(background_tasks)


@app.post("/chats/selection", response_model=SelectionResponse)
async def project_selection(request: SelectionRequest, handler: HandlerDep) -> SelectionResponse:
    """Minimized projection of the selected chats for the next stage."""
    return await handler.project_selection(request)


@app.post("/messages/delete", response_model=DeletionResponse)
async def delete_messages(request: DeleteMessagesRequest, handler: HandlerDep) -> DeletionResponse:
    """Delete own messages from the selected chats."""
    return await handler.delete_messages(request)


@app.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(handler: HandlerDep) -> CacheStatsResponse:
    """Avatar cache statistics."""
    return await handler.cache_stats()


@app.delete("/cache", response_model=dict[str, Any])
async def clear_cache(handler: HandlerDep) -> dict[str, Any]:
    """Remove every cached avatar."""
    return await handler.clear_cache()


@app.delete("/cache/{chat_id}", response_model=dict[str, Any])
async def delete_cached_avatar(chat_id: str, handler: HandlerDep) -> dict[str, Any]:
    """Remove one chat's cached avatar."""
    return await handler.delete_cached_avatar(chat_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "telecleaner.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
