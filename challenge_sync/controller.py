from __future__ import annotations

import asyncio
import logging
from datetime import datetime, tzinfo
from typing import Callable, Iterable

from challenge_sync.constants import MAX_CHALLENGES
from challenge_sync.local_store import LocalChallengeStore
from challenge_sync.models import Challenge, new_challenge

logger = logging.getLogger(__name__)

Listener = Callable[[tuple], None]


class ChallengeSyncController:
    """The challenge list the UI observes, plus every way to change it.

    All methods run on one event loop. The published ``challenges`` tuple is
    always the result of the latest local store read, refreshed after each
    mutation. Signing in to an account starts one reconciliation pass with
    the remote repository:

    * remote empty, local not: upload the local challenges;
    * remote not empty: remote replaces the local scope;
    * both empty: nothing to move.

    Local edits are not pushed to the remote unless ``sync_local_edits`` is
    set.
    """

    def __init__(
        self,
        store: LocalChallengeStore,
        remote,
        max_challenges: int = MAX_CHALLENGES,
        sync_local_edits: bool = False,
        loop: asyncio.AbstractEventLoop | None = None,
        tz: tzinfo | None = None,
    ):
        self._store = store
        self._remote = remote
        self._max_challenges = max_challenges
        self._sync_local_edits = sync_local_edits
        self._loop = loop
        self._tz = tz
        self._owner_id: str | None = None
        self._initial_sync_done = False
        self._challenges: tuple = ()
        self._listeners: list[Listener] = []
        self._sync_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self._publish(self._store.set_active_scope(None))

    # ----- published state -----

    @property
    def challenges(self) -> tuple:
        return self._challenges

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    @property
    def initial_sync_done(self) -> bool:
        return self._initial_sync_done

    @property
    def max_challenges(self) -> int:
        return self._max_challenges

    @property
    def can_add(self) -> bool:
        return len(self._challenges) < self._max_challenges

    def get(self, challenge_id: str) -> Challenge | None:
        return next((c for c in self._challenges if c.id == challenge_id), None)

    def current_day(self, challenge_id: str, now: datetime | None = None) -> int | None:
        challenge = self.get(challenge_id)
        if challenge is None:
            return None
        return challenge.current_day(now, self._tz)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, challenges: Iterable[Challenge]) -> None:
        self._challenges = tuple(challenges)
        for listener in list(self._listeners):
            try:
                listener(self._challenges)
            except Exception:
                logger.exception("Challenge listener failed")

    def reload(self) -> None:
        self._publish(self._store.list())

    # ----- account scope -----

    def switch_to_user(self, user_id: str | None) -> None:
        if user_id == self._owner_id:
            return
        self._initial_sync_done = False
        self._owner_id = user_id
        self._publish(self._store.set_active_scope(user_id))
        if user_id is not None:
            self._sync_task = self._spawn(self._reconcile(user_id))

    def _spawn(self, coro) -> asyncio.Task | None:
        try:
            loop = self._loop or asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("No event loop running; remote sync skipped")
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_for_sync(self) -> None:
        """Wait for the running reconciliation pass and any remote pushes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _reconcile(self, user_id: str) -> None:
        try:
            remote = await self._remote.fetch_all()
        except Exception as exc:
            logger.error("Initial sync failed: %s", exc)
            return
        if self._owner_id != user_id:
            logger.debug("Discarding sync result for %s; account changed", user_id)
            return

        local = list(self._challenges)
        if not remote and local:
            logger.info("Remote is empty; uploading %s local challenge(s)", len(local))
            await self._upload(local)
            if self._owner_id == user_id:
                self._initial_sync_done = True
        elif remote:
            logger.info("Replacing local challenges with %s remote challenge(s)", len(remote))
            self._store.replace_all_in_scope(remote)
            self._initial_sync_done = True
            self.reload()
        else:
            self._initial_sync_done = True

    async def _upload(self, challenges: list[Challenge]) -> None:
        results = await asyncio.gather(
            *(self._remote.save(challenge) for challenge in challenges),
            return_exceptions=True,
        )
        for challenge, result in zip(challenges, results):
            if isinstance(result, BaseException):
                logger.error("Failed to upload challenge %s: %s", challenge.id, result)

    # ----- remote pushes for local edits -----

    def _push_save(self, challenge_id: str) -> None:
        if not self._sync_local_edits or self._owner_id is None:
            return
        challenge = self.get(challenge_id)
        if challenge is not None:
            self._spawn(self._remote_call(self._remote.save, challenge, challenge_id))

    def _push_delete(self, challenge_id: str) -> None:
        if not self._sync_local_edits or self._owner_id is None:
            return
        self._spawn(self._remote_call(self._remote.delete, challenge_id, challenge_id))

    async def _remote_call(self, method, argument, challenge_id: str) -> None:
        try:
            await method(argument)
        except Exception as exc:
            logger.error("Failed to push challenge %s: %s", challenge_id, exc)

    # ----- mutations -----

    def add(self, challenge: Challenge) -> bool:
        if self._store.count() >= self._max_challenges:
            return False
        if any(c.id == challenge.id for c in self._store.list()):
            logger.warning("Challenge %s already exists; not adding", challenge.id)
            return False
        written = self._store.insert(challenge)
        self.reload()
        if written:
            self._push_save(challenge.id)
        return True

    def create(self, title, accent_color: str | None = None) -> Challenge | None:
        challenge = new_challenge(title, accent_color)
        if not self.add(challenge):
            return None
        return challenge

    def update(self, challenge: Challenge) -> None:
        written = self._store.update(challenge)
        self.reload()
        if written:
            self._push_save(challenge.id)

    def delete(self, challenge_id: str) -> None:
        written = self._store.delete(challenge_id)
        self.reload()
        if written:
            self._push_delete(challenge_id)

    def toggle_day(self, challenge_id: str, day: int) -> None:
        challenge = self.get(challenge_id)
        if challenge is None:
            return
        days = set(challenge.completed_days)
        if day in days:
            days.discard(day)
        else:
            days.add(day)
        self.update(challenge.model_copy(update={"completed_days": days}))

    def complete_day(self, challenge_id: str, day: int) -> None:
        challenge = self.get(challenge_id)
        if challenge is None:
            return
        self.update(challenge.model_copy(update={"completed_days": set(challenge.completed_days) | {day}}))
