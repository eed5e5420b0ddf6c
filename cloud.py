"""Backup and restore of month data to a Firebase Realtime Database over REST."""

from __future__ import annotations

import hmac
import logging
import time
from typing import Any

import requests

from models import Config, MonthlySummary, WorkRecord
from utils import is_date_key, month_key

logger = logging.getLogger(__name__)


class CloudSyncError(RuntimeError):
    """Remote backup or restore failed."""


def build_backup_payload(
    year: int,
    month: int,
    records: dict[str, WorkRecord],
    summary: MonthlySummary,
) -> dict[str, Any]:
    return {
        "records": {key: records[key].to_dict() for key in sorted(records)},
        "summary": summary.to_dict(),
        "updatedAt": summary.updated_at,
        "year": year,
        "month": month,
    }


def now_millis() -> int:
    return int(time.time() * 1000)


class CloudClient:
    """Thin client for the per-user attendance tree."""

    def __init__(
        self,
        base_url: str,
        user: str,
        auth_token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.user = user
        self.auth_token = auth_token or None
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/users/{self.user}/{path}.json"

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        params = {"auth": self.auth_token} if self.auth_token else None
        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method, url, json=payload, params=params, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.warning("Cloud %s %s failed: %s", method, path, e)
            raise CloudSyncError(str(e)) from e
        except ValueError as e:
            raise CloudSyncError(f"Invalid response from server: {e}") from e

    def backup_month(
        self,
        year: int,
        month: int,
        records: dict[str, WorkRecord],
        summary: MonthlySummary,
    ) -> None:
        payload = build_backup_payload(year, month, records, summary)
        self._request("PUT", f"attendance/{month_key(year, month)}", payload)
        logger.info("Backed up %d records for %s", len(records), month_key(year, month))

    def restore_month(self, year: int, month: int) -> dict[str, WorkRecord] | None:
        """Records stored remotely for a month, or None if nothing is stored."""
        data = self._request("GET", f"attendance/{month_key(year, month)}")
        if data is None:
            return None
        if not isinstance(data, dict):
            raise CloudSyncError("Unexpected backup format")

        raw_records = data.get("records") or {}
        if not isinstance(raw_records, dict):
            raise CloudSyncError("Unexpected records format")
        records = {}
        for key, value in raw_records.items():
            if not is_date_key(key):
                raise CloudSyncError(f"Invalid date key {key!r} in backup")
            if not isinstance(value, dict):
                raise CloudSyncError(f"Record for {key} is not an object")
            records[key] = WorkRecord.from_dict(value)
        return records

    def backup_holidays(self, overrides: dict[str, str | None]) -> None:
        # The database drops null values, so removals are stored as "".
        payload = {key: name or "" for key, name in overrides.items()}
        self._request("PUT", "holidays", payload)

    def restore_holidays(self) -> dict[str, str | None] | None:
        data = self._request("GET", "holidays")
        if data is None:
            return None
        if not isinstance(data, dict):
            raise CloudSyncError("Unexpected holidays format")
        return {key: (name or None) for key, name in data.items()}


class CloudGate:
    """Shared-passphrase switch that enables sync for the session."""

    def __init__(self, config: Config):
        self.config = config
        self.unlocked = False

    def unlock(self, passphrase: str) -> bool:
        if not self.config.cloud_passphrase:
            return False
        if hmac.compare_digest(passphrase.encode(), self.config.cloud_passphrase.encode()):
            self.unlocked = True
        return self.unlocked

    def client(self, session: requests.Session | None = None) -> CloudClient:
        if not self.config.cloud_enabled:
            raise CloudSyncError("Cloud sync is not configured")
        if not self.unlocked:
            raise CloudSyncError("Cloud sync is locked")
        return CloudClient(
            self.config.cloud_url,
            self.config.cloud_user,
            auth_token=self.config.cloud_auth_token,
            session=session,
        )
