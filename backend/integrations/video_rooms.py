"""
100ms video room provisioning

One persistent room per doctor, created lazily on first assignment, plus
short-lived role-scoped room codes for every booking.
"""
import asyncio
import logging
import weakref
from typing import Optional

import httpx

from services.errors import ProvisionError

logger = logging.getLogger(__name__)


class VideoRoomProvisioner:
    def __init__(
        self,
        token: str,
        template_id: str,
        api_base: str = "https://api.100ms.live/v2",
        meeting_host: str = "antarnaa-videoconf-1243.app.100ms.live",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.template_id = template_id
        self.api_base = api_base.rstrip("/")
        self.meeting_host = meeting_host
        self.timeout = timeout
        self._transport = transport
        # Held only while some assignment is using it
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}

    def _lock_for(self, doctor_id: int) -> asyncio.Lock:
        lock = self._locks.get(doctor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[doctor_id] = lock
        return lock

    async def _post(self, url: str, payload: dict, what: str) -> dict:
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ProvisionError(f"{what} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ProvisionError(f"{what} failed: {e}") from e

        if not response.is_success:
            raise ProvisionError(f"{what} failed: HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise ProvisionError(f"{what} returned a non-JSON body") from e

    async def ensure_room(self, doctor, store) -> str:
        """
        Return the doctor's room id, creating and persisting it on first use.

        Provisioning for one doctor is serialized by a per-doctor lock; the
        persisted value is written with compare-and-set so a racing process
        cannot overwrite it.
        """
        if doctor.room_id:
            logger.debug("Using existing room %s for doctor %s", doctor.room_id, doctor.id)
            return doctor.room_id

        async with self._lock_for(doctor.id):
            existing = store.current_room_id(doctor.id)
            if existing:
                return existing

            logger.info("Creating new room for doctor %s", doctor.id)
            data = await self._post(
                f"{self.api_base}/rooms",
                {
                    # Provider-side name doubles as an idempotency key
                    "name": f"room-{doctor.id}",
                    "description": f"Room for Dr. {doctor.name}",
                    "template_id": self.template_id,
                },
                "Room creation",
            )
            room_id = data.get("id")
            if not room_id:
                raise ProvisionError("Room creation response carried no id")

            persisted = store.claim_doctor_room(doctor.id, room_id)
            logger.info("Doctor %s bound to room %s", doctor.id, persisted)
            return persisted

    async def mint_join_link(self, room_id: str, participant: str, role: str) -> str:
        """Join URL for ``role`` in ``room_id``; empty if the provider has no code for that role."""
        data = await self._post(
            f"{self.api_base}/room-codes/room/{room_id}",
            {"role": role, "user_id": participant},
            f"Room code for {role}",
        )
        for entry in data.get("data") or []:
            if entry.get("role") == role and entry.get("code"):
                return f"https://{self.meeting_host}/meeting/{entry['code']}"

        logger.warning("No room code with role %r for %s in room %s", role, participant, room_id)
        return ""
