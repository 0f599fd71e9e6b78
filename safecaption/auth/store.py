"""Data store for profiles, API keys, sessions, usage logs and payment orders.

``DataStore`` is the narrow interface the access gate, the key endpoints and
billing consume. ``JsonDataStore`` backs it with JSON files under
``~/.safecaption/`` (or ``SAFECAPTION_DATA_DIR``):

- ``profiles.json`` -- list of profile dicts
- ``api_keys.json`` -- list of API key dicts
- ``sessions.json`` -- list of session dicts
- ``payment_orders.json`` -- list of payment order dicts
- ``usage_logs.jsonl`` -- one usage log per line, append-only

Reads and writes are not locked. Counters are read-then-written, so two
concurrent requests can both observe the same value; quota and rate checks
built on top are approximate under concurrency.
"""

from __future__ import annotations

import json
import secrets
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, fields
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional, TypeVar

from safecaption import config
from safecaption.auth.models import ApiKeyRecord, Profile, Session, UsageLog, utc_now
from safecaption.billing.models import PaymentOrder
from safecaption.errors import InputError, StoreError

API_KEY_PREFIX = "sk_"

T = TypeVar("T")


def generate_api_key() -> str:
    """Return a fresh secret key: ``sk_`` followed by 64 hex characters."""
    return API_KEY_PREFIX + secrets.token_hex(32)


def _from_dict(cls: type[T], d: dict[str, Any]) -> T:
    names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in d.items() if k in names})


def _parse_time(value: str) -> Optional[datetime]:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DataStore(ABC):
    """Interface to the external store backing auth, metering and billing."""

    # -- profiles ------------------------------------------------------------

    @abstractmethod
    def create_profile(self, email: str) -> Profile: ...

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]: ...

    @abstractmethod
    def get_profile_by_email(self, email: str) -> Optional[Profile]: ...

    @abstractmethod
    def update_subscription(
        self,
        user_id: str,
        tier: str,
        status: str,
        call_limit: int,
        reset_count: bool = True,
    ) -> Optional[Profile]: ...

    @abstractmethod
    def increment_api_calls(self, user_id: str) -> None: ...

    # -- API keys ------------------------------------------------------------

    @abstractmethod
    def create_api_key(self, user_id: str, name: str) -> ApiKeyRecord: ...

    @abstractmethod
    def list_api_keys(self, user_id: str) -> list[ApiKeyRecord]: ...

    @abstractmethod
    def get_api_key_with_profile(self, key: str) -> Optional[tuple[ApiKeyRecord, Profile]]:
        """Look up a key by its secret, joined with the owning profile."""

    @abstractmethod
    def deactivate_api_key(self, user_id: str, key_id: str) -> bool: ...

    @abstractmethod
    def delete_api_key(self, user_id: str, key_id: str) -> bool: ...

    @abstractmethod
    def touch_api_key(self, key_id: str, when: datetime) -> None:
        """Bump a key's usage count and last-used timestamp."""

    # -- usage ---------------------------------------------------------------

    @abstractmethod
    def record_usage(self, log: UsageLog) -> None: ...

    @abstractmethod
    def count_usage_since(self, api_key_id: str, since: datetime) -> int: ...

    # -- sessions ------------------------------------------------------------

    @abstractmethod
    def create_session(self, user_id: str, expires_in_hours: int = 24) -> Session: ...

    @abstractmethod
    def get_session_profile(self, token: str) -> Optional[Profile]: ...

    # -- payment orders ------------------------------------------------------

    @abstractmethod
    def save_payment_order(self, order: PaymentOrder) -> PaymentOrder: ...

    @abstractmethod
    def get_payment_order(self, order_id: str) -> Optional[PaymentOrder]: ...

    @abstractmethod
    def update_payment_order(self, order_id: str, **changes: Any) -> Optional[PaymentOrder]: ...


class JsonDataStore(DataStore):
    """File-based ``DataStore``.

    Unreadable or corrupt files raise ``StoreError`` instead of being
    treated as empty, so callers can tell an outage from a missing record.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base = Path(base_dir) if base_dir else config.data_dir()
        self._base.mkdir(parents=True, exist_ok=True)
        self._profiles_path = self._base / "profiles.json"
        self._keys_path = self._base / "api_keys.json"
        self._sessions_path = self._base / "sessions.json"
        self._orders_path = self._base / "payment_orders.json"
        self._usage_path = self._base / "usage_logs.jsonl"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreError(f"Failed to read {path.name}: {exc}") from exc
        if not isinstance(data, list):
            raise StoreError(f"Malformed data in {path.name}")
        return data

    def _write_json(self, path: Path, data: list[dict]) -> None:
        try:
            path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Failed to write {path.name}: {exc}") from exc

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def create_profile(self, email: str) -> Profile:
        profiles = self._read_json(self._profiles_path)
        if any(d.get("email", "").lower() == email.lower() for d in profiles):
            raise InputError(f"A profile already exists for {email}", code="PROFILE_EXISTS")
        profile = Profile(id=str(uuid.uuid4()), email=email)
        profiles.append(asdict(profile))
        self._write_json(self._profiles_path, profiles)
        return profile

    def get_profile(self, user_id: str) -> Optional[Profile]:
        for d in self._read_json(self._profiles_path):
            if d["id"] == user_id:
                return _from_dict(Profile, d)
        return None

    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        for d in self._read_json(self._profiles_path):
            if d.get("email", "").lower() == email.lower():
                return _from_dict(Profile, d)
        return None

    def update_subscription(
        self,
        user_id: str,
        tier: str,
        status: str,
        call_limit: int,
        reset_count: bool = True,
    ) -> Optional[Profile]:
        profiles = self._read_json(self._profiles_path)
        for d in profiles:
            if d["id"] == user_id:
                d["subscription_tier"] = tier
                d["subscription_status"] = status
                d["api_calls_limit"] = call_limit
                if reset_count:
                    d["api_calls_count"] = 0
                d["updated_at"] = utc_now().isoformat()
                self._write_json(self._profiles_path, profiles)
                return _from_dict(Profile, d)
        return None

    def increment_api_calls(self, user_id: str) -> None:
        profiles = self._read_json(self._profiles_path)
        for d in profiles:
            if d["id"] == user_id:
                d["api_calls_count"] = d.get("api_calls_count", 0) + 1
                d["updated_at"] = utc_now().isoformat()
                self._write_json(self._profiles_path, profiles)
                return

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    def create_api_key(self, user_id: str, name: str) -> ApiKeyRecord:
        record = ApiKeyRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            key=generate_api_key(),
            name=name,
        )
        keys = self._read_json(self._keys_path)
        keys.append(asdict(record))
        self._write_json(self._keys_path, keys)
        return record

    def list_api_keys(self, user_id: str) -> list[ApiKeyRecord]:
        return [
            _from_dict(ApiKeyRecord, d)
            for d in self._read_json(self._keys_path)
            if d["user_id"] == user_id
        ]

    def get_api_key_with_profile(self, key: str) -> Optional[tuple[ApiKeyRecord, Profile]]:
        for d in self._read_json(self._keys_path):
            if d["key"] == key:
                profile = self.get_profile(d["user_id"])
                if profile is None:
                    return None
                return _from_dict(ApiKeyRecord, d), profile
        return None

    def deactivate_api_key(self, user_id: str, key_id: str) -> bool:
        keys = self._read_json(self._keys_path)
        for d in keys:
            if d["id"] == key_id and d["user_id"] == user_id:
                d["is_active"] = False
                self._write_json(self._keys_path, keys)
                return True
        return False

    def delete_api_key(self, user_id: str, key_id: str) -> bool:
        keys = self._read_json(self._keys_path)
        remaining = [d for d in keys if not (d["id"] == key_id and d["user_id"] == user_id)]
        if len(remaining) < len(keys):
            self._write_json(self._keys_path, remaining)
            return True
        return False

    def touch_api_key(self, key_id: str, when: datetime) -> None:
        keys = self._read_json(self._keys_path)
        for d in keys:
            if d["id"] == key_id:
                d["usage_count"] = d.get("usage_count", 0) + 1
                d["last_used"] = when.isoformat()
                self._write_json(self._keys_path, keys)
                return

    # ------------------------------------------------------------------
    # Usage logs
    # ------------------------------------------------------------------

    def record_usage(self, log: UsageLog) -> None:
        try:
            with self._usage_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(log)) + "\n")
        except OSError as exc:
            raise StoreError(f"Failed to append usage log: {exc}") from exc

    def _load_usage(self) -> list[UsageLog]:
        if not self._usage_path.exists():
            return []
        try:
            text = self._usage_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Failed to read usage logs: {exc}") from exc
        logs: list[UsageLog] = []
        for line in text.splitlines():
            line = line.strip()
            if line:
                try:
                    logs.append(_from_dict(UsageLog, json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    continue
        return logs

    def count_usage_since(self, api_key_id: str, since: datetime) -> int:
        count = 0
        for log in self._load_usage():
            if log.api_key_id != api_key_id:
                continue
            created = _parse_time(log.created_at)
            if created is not None and created >= since:
                count += 1
        return count

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, user_id: str, expires_in_hours: int = 24) -> Session:
        now = utc_now()
        session = Session(
            token=secrets.token_urlsafe(48),
            user_id=user_id,
            created_at=now.isoformat(),
            expires_at=(now + timedelta(hours=expires_in_hours)).isoformat(),
        )
        sessions = self._read_json(self._sessions_path)
        sessions.append(asdict(session))
        self._write_json(self._sessions_path, sessions)
        return session

    def get_session_profile(self, token: str) -> Optional[Profile]:
        sessions = self._read_json(self._sessions_path)
        for d in sessions:
            if d["token"] == token:
                expires = _parse_time(d.get("expires_at", ""))
                if expires is not None and expires < utc_now():
                    # Expired -- clean it up
                    self._write_json(
                        self._sessions_path, [s for s in sessions if s["token"] != token]
                    )
                    return None
                return self.get_profile(d["user_id"])
        return None

    # ------------------------------------------------------------------
    # Payment orders
    # ------------------------------------------------------------------

    def save_payment_order(self, order: PaymentOrder) -> PaymentOrder:
        orders = self._read_json(self._orders_path)
        orders.append(asdict(order))
        self._write_json(self._orders_path, orders)
        return order

    def get_payment_order(self, order_id: str) -> Optional[PaymentOrder]:
        for d in self._read_json(self._orders_path):
            if d["order_id"] == order_id:
                return _from_dict(PaymentOrder, d)
        return None

    def update_payment_order(self, order_id: str, **changes: Any) -> Optional[PaymentOrder]:
        orders = self._read_json(self._orders_path)
        for d in orders:
            if d["order_id"] == order_id:
                for k, v in changes.items():
                    if k in PaymentOrder.__dataclass_fields__ and k != "order_id":
                        d[k] = v
                self._write_json(self._orders_path, orders)
                return _from_dict(PaymentOrder, d)
        return None
