"""Settings loaded from environment variables.

Only the CLI reads these; the store and the session take every value as an
explicit argument so they stay usable without any environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "IRQUEUE"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Vault layout ----
    vault_dir: Path
    queue_folder: str
    queue_format: str

    # ---- Local state ----
    # Vault-relative unless absolute.
    state_file: Path
    audit_log: Path | None

    # ---- Logging ----
    log_level: str
    log_file: Path | None
    # "console" prints notices to stderr, "log" sends them to the log
    notices: str

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            vault_dir=_env_path(_k("VAULT_DIR"), Path(".")) or Path("."),
            queue_folder=_env(_k("QUEUE_FOLDER"), "IncrementalReading"),
            queue_format=_env(_k("FORMAT"), "json").lower(),
            state_file=_env_path(_k("STATE_FILE"), Path(".irqueue/session.json"))
            or Path(".irqueue/session.json"),
            audit_log=_env_path(_k("AUDIT_LOG"), None),
            log_level=_env(_k("LOG_LEVEL"), "WARNING").upper(),
            log_file=_env_path(_k("LOG_FILE"), None),
            notices=_env(_k("NOTICES"), "console").lower(),
        )


def get_settings() -> Settings:
    return Settings.from_env()
