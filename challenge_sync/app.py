from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx

from challenge_sync.controller import ChallengeSyncController
from challenge_sync.db import create_local_engine
from challenge_sync.identity import IdentityBridge
from challenge_sync.local_store import LocalChallengeStore
from challenge_sync.logging_config import configure_logging
from challenge_sync.remote import FirestoreChallengeRepository
from challenge_sync.settings import Settings, get_settings


@dataclass
class ChallengeSync:
    controller: ChallengeSyncController
    identity: IdentityBridge
    store: LocalChallengeStore
    remote: FirestoreChallengeRepository


def build_challenge_sync(
    settings: Settings | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ChallengeSync:
    """Wire the engine together; the auth layer then feeds ``identity``."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = create_local_engine(settings.database_url)
    store = LocalChallengeStore.open(engine, legacy_key=settings.legacy_challenges_key)
    identity = IdentityBridge(loop=loop)
    remote = FirestoreChallengeRepository(
        settings.firestore_project_id,
        identity.session,
        base_url=settings.firestore_base_url,
        timeout=settings.firestore_timeout_seconds,
        transport=transport,
    )
    controller = ChallengeSyncController(
        store,
        remote,
        sync_local_edits=settings.sync_local_edits,
        loop=loop,
        tz=settings.timezone,
    )
    identity.bind(controller.switch_to_user)
    return ChallengeSync(controller=controller, identity=identity, store=store, remote=remote)
