from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSession:
    uid: str
    id_token: str | None = None


class IdentityBridge:
    """Holds the signed-in account and forwards account changes.

    The auth layer pushes sessions in with :meth:`set_session` (on the event
    loop thread), :meth:`post` (from any thread) or :meth:`follow` (an async
    stream). The bound callback only fires when the account id changes;
    token refreshes for the same account just replace the stored session.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._session: AccountSession | None = None
        self._on_change: Callable[[str | None], None] | None = None

    def bind(self, on_change: Callable[[str | None], None]) -> None:
        self._on_change = on_change

    def session(self) -> AccountSession | None:
        return self._session

    @property
    def uid(self) -> str | None:
        return self._session.uid if self._session else None

    def set_session(self, session: AccountSession | None) -> None:
        previous = self.uid
        self._session = session
        if self.uid == previous:
            return
        logger.info("Account changed: %s -> %s", previous or "signed out", self.uid or "signed out")
        if self._on_change is not None:
            self._on_change(self.uid)

    def post(self, session: AccountSession | None) -> None:
        loop = self._loop
        if loop is None:
            raise RuntimeError("IdentityBridge.post needs an event loop")
        loop.call_soon_threadsafe(self.set_session, session)

    async def follow(self, stream: AsyncIterable[AccountSession | None]) -> None:
        async for session in stream:
            self.set_session(session)
