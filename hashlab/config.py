from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field


PaddingName = Literal["pkcs7", "iso_m2", "ansi_x923"]


class Settings(BaseModel):
    # Logging
    log_level: str = Field(default="INFO")

    # SPRNG
    sprng_init_attempts: int = Field(default=5, ge=1, le=64, description="Channel selection retries")
    sprng_noise_channels: int = Field(default=8, ge=1, le=256)

    # AES
    enforce_distinct_mac_key: bool = Field(
        default=True,
        description="Reject authenticated encryption when the MAC schedule equals the encryption schedule",
    )
    default_padding: PaddingName = Field(default="pkcs7")

    # Self-test
    selftest_seed: int = Field(default=1337)
    runs_dir: str = Field(default="runs")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    # Load .env if present
    load_dotenv()

    def _bool(name: str, default: bool) -> bool:
        v = os.getenv(name)
        if v is None:
            return default
        return v.strip().lower() in {"1", "true", "yes", "y", "on"}

    return Settings(
        log_level=os.getenv("HASHLAB_LOG_LEVEL", "INFO").upper(),
        sprng_init_attempts=int(os.getenv("HASHLAB_SPRNG_INIT_ATTEMPTS", "5")),
        sprng_noise_channels=int(os.getenv("HASHLAB_SPRNG_NOISE_CHANNELS", "8")),
        enforce_distinct_mac_key=_bool("HASHLAB_ENFORCE_DISTINCT_MAC_KEY", True),
        default_padding=os.getenv("HASHLAB_DEFAULT_PADDING", "pkcs7").strip().lower(),
        selftest_seed=int(os.getenv("HASHLAB_SELFTEST_SEED", "1337")),
        runs_dir=os.getenv("HASHLAB_RUNS_DIR", "runs"),
    )
