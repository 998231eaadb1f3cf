"""Tests for IdentityBridge, the auth-layer seam."""

import asyncio
import threading

import pytest

from challenge_sync.identity import AccountSession, IdentityBridge


@pytest.fixture
def changes() -> list:
    return []


@pytest.fixture
def bridge(changes) -> IdentityBridge:
    bridge = IdentityBridge()
    bridge.bind(changes.append)
    return bridge


def test_forwards_distinct_account_changes(bridge, changes) -> None:
    bridge.set_session(AccountSession("alice", "t1"))
    bridge.set_session(AccountSession("alice", "t2"))
    bridge.set_session(None)
    bridge.set_session(None)
    bridge.set_session(AccountSession("bob"))

    assert changes == ["alice", None, "bob"]


def test_token_refresh_replaces_session(bridge) -> None:
    bridge.set_session(AccountSession("alice", "t1"))
    bridge.set_session(AccountSession("alice", "t2"))

    assert bridge.session() == AccountSession("alice", "t2")
    assert bridge.uid == "alice"


def test_unbound_bridge_just_stores() -> None:
    bridge = IdentityBridge()
    bridge.set_session(AccountSession("alice"))
    assert bridge.uid == "alice"


async def test_follow_consumes_stream(bridge, changes) -> None:
    async def stream():
        yield AccountSession("alice")
        yield AccountSession("alice", "refreshed")
        yield None

    await bridge.follow(stream())

    assert changes == ["alice", None]
    assert bridge.session() is None


async def test_post_hops_onto_the_loop(changes) -> None:
    loop = asyncio.get_running_loop()
    bridge = IdentityBridge(loop=loop)
    seen_threads = []

    def on_change(uid):
        seen_threads.append(threading.get_ident())
        changes.append(uid)

    bridge.bind(on_change)
    worker = threading.Thread(target=bridge.post, args=(AccountSession("alice"),))
    worker.start()
    worker.join()
    for _ in range(10):
        if changes:
            break
        await asyncio.sleep(0)

    assert changes == ["alice"]
    assert seen_threads == [threading.get_ident()]


def test_post_without_loop_raises() -> None:
    with pytest.raises(RuntimeError):
        IdentityBridge().post(AccountSession("alice"))
