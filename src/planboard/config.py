"""Runtime settings read from the environment (and a .env file, if present)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, model_validator


class Settings(BaseModel):
    backend: Literal["sqlite", "rest"] = "sqlite"
    db_path: Path = Path("planboard.db")
    rest_url: str | None = None
    rest_key: str | None = None
    http_timeout: float = 10.0
    done_status: str = "done"
    webhook_url: str | None = None
    log_level: str = "INFO"
    port: int = 8000

    @model_validator(mode="after")
    def _check_backend(self) -> Settings:
        if self.backend == "rest" and not (self.rest_url and self.rest_key):
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the rest backend")
        return self

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ
        return cls(
            backend=env.get("PLANBOARD_BACKEND", "sqlite"),
            db_path=Path(env.get("PLANBOARD_DB_PATH", "planboard.db")),
            rest_url=env.get("SUPABASE_URL") or None,
            rest_key=env.get("SUPABASE_KEY") or None,
            http_timeout=float(env.get("PLANBOARD_HTTP_TIMEOUT", "10")),
            done_status=env.get("PLANBOARD_DONE_STATUS", "done"),
            webhook_url=env.get("PLANBOARD_WEBHOOK_URL") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            port=int(env.get("PORT", "8000")),
        )
