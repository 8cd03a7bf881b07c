import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        currency_code: str,
        cache_ttl_secs: float,
        cache_max_entries: int,
        cache_prune_minutes: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.currency_code = currency_code
        self.cache_ttl_secs = cache_ttl_secs
        self.cache_max_entries = cache_max_entries
        self.cache_prune_minutes = cache_prune_minutes


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("BUDGET_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "budget.db"
    database_url = os.getenv("BUDGET_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("BUDGET_TIMEZONE", "UTC")
    currency_code = os.getenv("BUDGET_CURRENCY", "USD").upper()
    cache_ttl_secs = float(os.getenv("BUDGET_CACHE_TTL_SECS", "300"))
    cache_max_entries = int(os.getenv("BUDGET_CACHE_MAX_ENTRIES", "100"))
    cache_prune_minutes = int(os.getenv("BUDGET_CACHE_PRUNE_MINUTES", "15"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        currency_code=currency_code,
        cache_ttl_secs=cache_ttl_secs,
        cache_max_entries=cache_max_entries,
        cache_prune_minutes=cache_prune_minutes,
    )
