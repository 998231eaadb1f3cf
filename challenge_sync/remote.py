from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import quote

import httpx

from challenge_sync.constants import (
    FIRESTORE_API,
    FIRESTORE_CHALLENGES_COLLECTION,
    FIRESTORE_PAGE_SIZE,
    FIRESTORE_USERS_COLLECTION,
)
from challenge_sync.firestore_dto import document_id, from_document, to_document
from challenge_sync.identity import AccountSession
from challenge_sync.models import Challenge

logger = logging.getLogger(__name__)


class RemoteRepositoryError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FirestoreChallengeRepository:
    """Per-account challenge documents in Firestore.

    Every call resolves the signed-in account at call time. Without an
    account (or without a configured project) calls succeed without touching
    the network.
    """

    def __init__(
        self,
        project_id: str | None,
        session_getter: Callable[[], AccountSession | None],
        base_url: str = FIRESTORE_API,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._project_id = project_id
        self._session_getter = session_getter
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _current_session(self) -> AccountSession | None:
        if not self._project_id:
            return None
        session = self._session_getter()
        if session is None or not session.uid:
            return None
        return session

    def _collection_url(self, uid: str) -> str:
        return (
            f"{self._base_url}/projects/{quote(self._project_id, safe='')}/databases/(default)/documents/"
            f"{FIRESTORE_USERS_COLLECTION}/{quote(uid, safe='')}/{FIRESTORE_CHALLENGES_COLLECTION}"
        )

    def _document_url(self, uid: str, challenge_id: str) -> str:
        return f"{self._collection_url(uid)}/{quote(challenge_id, safe='')}"

    async def _request(
        self,
        session: AccountSession,
        method: str,
        url: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> httpx.Response:
        headers = {}
        if session.id_token:
            headers["Authorization"] = f"Bearer {session.id_token}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            raise RemoteRepositoryError(f"Firestore request failed: {exc}") from exc
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not response.is_error:
            return
        try:
            detail = response.json()
        except ValueError:
            detail = response.text
        raise RemoteRepositoryError(
            f"Firestore error {response.status_code} {response.reason_phrase}: {detail}",
            status_code=response.status_code,
        )

    @staticmethod
    def _json_object(response: httpx.Response) -> dict:
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Firestore returned an unreadable body: %s", exc)
            raise RemoteRepositoryError(
                f"Firestore returned invalid JSON: {exc}", status_code=response.status_code
            ) from exc
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            logger.error("Firestore returned %s instead of an object", type(payload).__name__)
            raise RemoteRepositoryError(
                f"Firestore returned {type(payload).__name__} instead of an object",
                status_code=response.status_code,
            )
        return payload

    async def fetch_all(self) -> list[Challenge]:
        session = self._current_session()
        if session is None:
            return []
        url = self._collection_url(session.uid)
        challenges = []
        page_token = None
        while True:
            params = {"pageSize": FIRESTORE_PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            response = await self._request(session, "GET", url, params=params)
            try:
                self._raise_for_status(response)
            except RemoteRepositoryError as exc:
                logger.error("Firestore fetch failed: %s", exc)
                raise
            payload = self._json_object(response)
            for document in payload.get("documents") or []:
                challenge = from_document(document)
                if challenge is None:
                    logger.warning(
                        "Skipping malformed challenge document: %s",
                        document_id(document.get("name") if isinstance(document, dict) else None),
                    )
                    continue
                challenges.append(challenge)
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
        challenges.sort(key=lambda challenge: challenge.start_date)
        return challenges

    async def save(self, challenge: Challenge) -> None:
        session = self._current_session()
        if session is None:
            return
        response = await self._request(
            session,
            "PATCH",
            self._document_url(session.uid, challenge.id),
            json=to_document(challenge),
        )
        try:
            self._raise_for_status(response)
        except RemoteRepositoryError as exc:
            logger.error("Firestore save failed: %s", exc)
            raise

    async def delete(self, challenge_id: str) -> None:
        session = self._current_session()
        if session is None:
            return
        response = await self._request(session, "DELETE", self._document_url(session.uid, challenge_id))
        if response.status_code == 404:
            return
        try:
            self._raise_for_status(response)
        except RemoteRepositoryError as exc:
            logger.error("Firestore delete failed: %s", exc)
            raise
