"""Service configuration from environment."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_GROUP_IDS = ["group-1", "group-2", "group-3", "group-4", "group-5", "group-6"]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"
    public_dir: Path = PACKAGE_DIR / "public"
    accounts_file: Path = Path("data") / "accounts.json"
    group_ids: List[str] = field(default_factory=lambda: list(DEFAULT_GROUP_IDS))
    users_per_group: int = 50
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    notify_timeout: float = 5.0

    @property
    def account_limit(self) -> int:
        return len(self.group_ids) * self.users_per_group

    @classmethod
    def from_env(cls) -> "Settings":
        groups = [g.strip() for g in os.getenv("GROUP_IDS", "").split(",") if g.strip()]
        settings = cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", 3000),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            public_dir=Path(os.getenv("PUBLIC_DIR", str(PACKAGE_DIR / "public"))),
            accounts_file=Path(os.getenv("ACCOUNTS_FILE", str(Path("data") / "accounts.json"))),
            group_ids=groups or list(DEFAULT_GROUP_IDS),
            users_per_group=_int_env("USERS_PER_GROUP", 50),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
            notify_timeout=_float_env("NOTIFY_TIMEOUT", 5.0),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.users_per_group <= 0:
            raise ValueError("USERS_PER_GROUP must be positive")
        if not self.group_ids:
            raise ValueError("GROUP_IDS must name at least one group")
        if len(set(self.group_ids)) != len(self.group_ids):
            raise ValueError("GROUP_IDS contains duplicates")
