"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from telecleaner.config import configure_logging, settings
from telecleaner.handlers import ChatHandler
from telecleaner.protocols import ChatGateway, KeyValueStore
from telecleaner.repositories import HttpChatGateway, RedisKeyValueStore
from telecleaner.services import (
    AuthGate,
    AvatarCache,
    ChatListHydrator,
    DeletionService,
    SessionStore,
)


def get_handler(request: Request) -> ChatHandler:
    """Dependency injection for ChatHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The ChatHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "chat_handler", None)
    if handler is None:
        raise RuntimeError("ChatHandler not initialized. Check lifespan setup.")
    return handler


def get_store(request: Request) -> RedisKeyValueStore:
    """Dependency injection for the key-value store from app.state.

    Raises:
        RuntimeError: If the store is not initialized
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Key-value store not initialized. Check lifespan setup.")
    return store


def get_gateway(request: Request) -> HttpChatGateway:
    """Dependency injection for the gateway from app.state.

    Raises:
        RuntimeError: If the gateway is not initialized
    """
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError("Gateway not initialized. Check lifespan setup.")
    return gateway


def build_handler(store: KeyValueStore, gateway: ChatGateway) -> ChatHandler:
    """Wire every service on top of a store and a gateway."""
    session_store = SessionStore(store)
    auth_gate = AuthGate(session_store, revalidate=gateway.validate_session)
    avatar_cache = AvatarCache(store=store)
    hydrator = ChatListHydrator(gateway=gateway, avatar_cache=avatar_cache, auth_gate=auth_gate)
    return ChatHandler(
        hydrator=hydrator,
        avatar_cache=avatar_cache,
        session_store=session_store,
        auth_gate=auth_gate,
        deletion=DeletionService(gateway=gateway, auth_gate=auth_gate),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Store (Redis) and gateway (HTTP) - created explicitly
    2. Services wired on top of them, avatar cache index loaded
    3. Handler (HTTP endpoints) - stored in app.state.chat_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes clients and removes all services from app.state on shutdown
    """
    configure_logging()

    store = RedisKeyValueStore.create()
    gateway = HttpChatGateway.create()
    handler = build_handler(store, gateway)
    await handler.warm_up()

    app.state.store = store
    app.state.gateway = gateway
    app.state.chat_handler = handler

    print("✓ TeleCleaner API initialized")
    print(f"✓ Redis: {settings.redis_url}")
    print(f"✓ Gateway configured: {settings.gateway_configured}")
    print(f"✓ Store healthy: {await store.health_check()}")

    yield

    await gateway.close()
    await store.close()

    del app.state.chat_handler
    del app.state.gateway
    del app.state.store
    print("✓ TeleCleaner API shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ChatHandler, Depends(get_handler)]
StoreDep = Annotated[RedisKeyValueStore, Depends(get_store)]
GatewayDep = Annotated[HttpChatGateway, Depends(get_gateway)]
