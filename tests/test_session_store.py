"""
Tests for session persistence and the authentication gate.
"""

import asyncio

import pytest
from conftest import FailingStore, login

from telecleaner.exceptions import AuthRequiredError, GatewayError
from telecleaner.services import AuthGate, SessionStore


def test_save_and_load_session(store, session_store):
    async def scenario():
        await session_store.save_session("u1", "sess")
        return await session_store.load_session()

    assert asyncio.run(scenario()) == {"user_id": "u1", "session_string": "sess"}
    assert store.data[SessionStore.USER_ID_KEY] == "u1"
    assert store.data[SessionStore.SESSION_KEY] == "sess"


def test_partial_session_is_no_session(store, session_store):
    store.data[SessionStore.USER_ID_KEY] = "u1"

    assert asyncio.run(session_store.load_session()) is None


def test_clear_forgets_everything(store, session_store):
    login(store)

    asyncio.run(session_store.clear())
    assert store.data == {}


def test_token_roundtrip(session_store):
    async def scenario():
        await session_store.save_token("tok")
        saved = await session_store.load_token()
        await session_store.clear_token()
        return saved, await session_store.load_token()

    assert asyncio.run(scenario()) == ("tok", None)


def test_unreadable_store_reads_as_logged_out():
    sessions = SessionStore(FailingStore(fail_reads=True))

    assert asyncio.run(sessions.load_session()) is None
    assert asyncio.run(sessions.load_token()) is None


def test_write_failure_propagates():
    sessions = SessionStore(FailingStore(fail_writes=True))

    with pytest.raises(OSError):
        asyncio.run(sessions.save_session("u1", "sess"))


def test_require_auth_returns_full_session(store, auth_gate, gateway):
    login(store)

    session = asyncio.run(auth_gate.require_auth())
    assert (session.user_id, session.session_string, session.token) == ("u1", "sess", "tok")
    assert gateway.validate_calls == []


def test_require_auth_without_session_raises(auth_gate):
    with pytest.raises(AuthRequiredError):
        asyncio.run(auth_gate.require_auth())


def test_missing_token_is_revalidated_and_saved(store, session_store, auth_gate, gateway):
    login(store, token=None)
    gateway.validated_token = "fresh"

    session = asyncio.run(auth_gate.require_auth())

    assert session.token == "fresh"
    assert store.data[SessionStore.TOKEN_KEY] == "fresh"
    assert gateway.validate_calls[0].user_id == "u1"
    assert gateway.validate_calls[0].session_string == "sess"


def test_failed_revalidation_raises(store, auth_gate, gateway):
    login(store, token=None)
    gateway.validated_token = None

    with pytest.raises(AuthRequiredError):
        asyncio.run(auth_gate.require_auth())
    assert SessionStore.TOKEN_KEY not in store.data


def test_revalidation_gateway_error_becomes_auth_error(store, session_store):
    login(store, token=None)

    async def broken(session):
        raise GatewayError("validate-session", "unreachable")

    gate = AuthGate(session_store, revalidate=broken)
    with pytest.raises(AuthRequiredError) as excinfo:
        asyncio.run(gate.require_auth())
    assert "unreachable" in excinfo.value.reason


def test_missing_token_without_revalidator_raises(store, session_store):
    login(store, token=None)

    with pytest.raises(AuthRequiredError):
        asyncio.run(AuthGate(session_store).require_auth())


def test_is_authenticated(store, auth_gate, gateway):
    assert asyncio.run(auth_gate.is_authenticated()) is False

    login(store, token=None)
    assert asyncio.run(auth_gate.is_authenticated()) is False

    login(store)
    assert asyncio.run(auth_gate.is_authenticated()) is True
    assert gateway.validate_calls == []
