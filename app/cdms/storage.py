from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.cdms.db import session_scope
from app.cdms.models import StateSnapshot
from app.cdms.modules.document_control.models import DMSState

logger = logging.getLogger(__name__)

SNAPSHOT_ROW_ID = 1


class StorageError(RuntimeError):
    pass


def encode_state(state: DMSState) -> str:
    return json.dumps(state.to_dict(), sort_keys=True)


def decode_state(raw: str | bytes | None) -> DMSState:
    if not raw:
        return DMSState()
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("state snapshot must be a JSON object")
        return DMSState.from_dict(data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise StorageError(f"Stored state snapshot is unreadable: {e}") from e


class StateStore:
    """
    Whole-state persistence: load() returns the last saved snapshot (empty
    state when nothing was saved yet); save() overwrites it.
    """

    def load(self) -> DMSState:
        raise NotImplementedError

    def save(self, state: DMSState) -> None:
        raise NotImplementedError


class MemoryStateStore(StateStore):
    def __init__(self, state: DMSState | None = None) -> None:
        self._raw: str | None = encode_state(state) if state is not None else None

    def load(self) -> DMSState:
        return decode_state(self._raw)

    def save(self, state: DMSState) -> None:
        self._raw = encode_state(state)


@dataclass(frozen=True)
class LocalStateStore(StateStore):
    path: Path

    def load(self) -> DMSState:
        if not self.path.exists():
            return DMSState()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read state file {self.path}: {e}") from e
        return decode_state(raw)

    def save(self, state: DMSState) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(encode_state(state), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write state file {self.path}: {e}") from e


class SqlStateStore(StateStore):
    def __init__(self, sm: sessionmaker) -> None:
        self._sm = sm

    def load(self) -> DMSState:
        try:
            with session_scope(self._sm) as s:
                row = s.get(StateSnapshot, SNAPSHOT_ROW_ID)
                raw = row.payload_json if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot load state snapshot: {e}") from e
        return decode_state(raw)

    def save(self, state: DMSState) -> None:
        payload = encode_state(state)
        try:
            with session_scope(self._sm) as s:
                row = s.get(StateSnapshot, SNAPSHOT_ROW_ID)
                if row is None:
                    row = StateSnapshot(id=SNAPSHOT_ROW_ID, payload_json=payload)
                    s.add(row)
                else:
                    row.payload_json = payload
                row.updated_at = datetime.utcnow()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot save state snapshot: {e}") from e


@dataclass(frozen=True)
class S3StateStore(StateStore):
    endpoint: str
    region: str
    bucket: str
    key: str
    access_key_id: str
    secret_access_key: str

    def _client(self):
        try:
            import boto3  # type: ignore
        except Exception as e:  # pragma: no cover
            raise StorageError("boto3 required for S3 storage. Install boto3.") from e
        return boto3.client(
            "s3",
            endpoint_url=f"https://{self.endpoint}" if self.endpoint else None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    def load(self) -> DMSState:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            obj = self._client().get_object(Bucket=self.bucket, Key=self.key)
            raw = obj["Body"].read()
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return DMSState()
            raise StorageError(f"Cannot load state from s3://{self.bucket}/{self.key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Cannot load state from s3://{self.bucket}/{self.key}: {e}") from e
        return decode_state(raw)

    def save(self, state: DMSState) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client().put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=encode_state(state).encode("utf-8"),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Cannot save state to s3://{self.bucket}/{self.key}: {e}") from e


def state_store_from_config(config: dict, sm: sessionmaker | None = None) -> StateStore:
    backend = (config.get("STATE_BACKEND") or "sql").strip().lower()
    if backend == "s3":
        return S3StateStore(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "nyc3").strip(),
            bucket=(config.get("S3_BUCKET") or "").strip(),
            key=(config.get("S3_STATE_KEY") or "cdms/state.json").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
        )
    if backend == "local":
        p = Path(config.get("STATE_FILE") or "cdms_state.json")
        if not p.is_absolute():
            p = Path(os.getcwd()) / p
        return LocalStateStore(path=p)
    if backend == "memory":
        return MemoryStateStore()
    if backend != "sql":
        raise StorageError(f"Unknown STATE_BACKEND {backend!r} (expected sql, local, s3 or memory).")
    if sm is None:
        raise StorageError("SQL state backend needs an initialized database session factory.")
    return SqlStateStore(sm)
