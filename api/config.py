"""Environment-driven settings for the Flask API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

DEV_ENVIRONMENTS = {"dev", "development"}


@dataclass(frozen=True)
class Settings:
    env: str = "prod"
    data_dir: Path = Path("data")
    allowed_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"

    @property
    def is_dev(self) -> bool:
        return self.env in DEV_ENVIRONMENTS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        env_name = environ.get("FINANCE_TRACKER_ENV", "prod").strip().lower()
        raw_origins = environ.get("FINANCE_TRACKER_ALLOWED_ORIGINS", "")
        origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
        default_level = "DEBUG" if env_name in DEV_ENVIRONMENTS else "INFO"
        return cls(
            env=env_name,
            data_dir=Path(environ.get("FINANCE_TRACKER_DATA_DIR", "data")),
            allowed_origins=origins,
            log_level=environ.get("FINANCE_TRACKER_LOG_LEVEL", default_level).upper(),
        )
