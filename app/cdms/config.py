import os
from dataclasses import dataclass

from app.cdms.constants import DEFAULT_QUALITY_UNIT_ACTOR


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    state_backend: str
    state_file: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str
    s3_state_key: str

    quality_unit_actor: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///cdms.db"),
        state_backend=_getenv("STATE_BACKEND", "sql"),
        state_file=_getenv("STATE_FILE", "cdms_state.json"),
        s3_endpoint=_getenv("S3_ENDPOINT", ""),
        s3_region=_getenv("S3_REGION", "nyc3"),
        s3_bucket=_getenv("S3_BUCKET", ""),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY", ""),
        s3_state_key=_getenv("S3_STATE_KEY", "cdms/state.json"),
        quality_unit_actor=_getenv("QUALITY_UNIT_ACTOR", DEFAULT_QUALITY_UNIT_ACTOR),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "STATE_BACKEND": s.state_backend,
        "STATE_FILE": s.state_file,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_BUCKET": s.s3_bucket,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "S3_STATE_KEY": s.s3_state_key,
        "QUALITY_UNIT_ACTOR": s.quality_unit_actor,
        # request body limit for JSON payloads (1MB)
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
