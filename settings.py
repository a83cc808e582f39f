"""Environment configuration."""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    supabase_url: str | None
    supabase_key: str | None
    store_max_retries: int = 2
    store_retry_delay: float = 0.5
    provider_query_workers: int = 1
    default_appointment_minutes: int = 30
    slot_interval_minutes: int = 30
    log_level: str = "INFO"
    port: int = 8000

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@lru_cache
def get_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_KEY"),
        store_max_retries=int(os.getenv("STORE_MAX_RETRIES", "2")),
        store_retry_delay=float(os.getenv("STORE_RETRY_DELAY", "0.5")),
        provider_query_workers=int(os.getenv("PROVIDER_QUERY_WORKERS", "1")),
        default_appointment_minutes=int(os.getenv("DEFAULT_APPOINTMENT_MINUTES", "30")),
        slot_interval_minutes=int(os.getenv("SLOT_INTERVAL_MINUTES", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", "8000")),
    )
