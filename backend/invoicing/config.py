"""Application settings and environment variables"""
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings

# Backend root (backend/); relative paths resolve against it, not the working directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    app_name: str = "Operations Dashboard - Invoicing"
    debug: bool = True
    log_level: str = "INFO"
    # Day-type policy (overtime window, caps, holidays, position labels)
    policy_file: Path = Path("config/invoice_rules.yaml")
    # IANA zone for time-of-day math on timezone-aware shift timestamps (unset: host local zone); naive timestamps are used as-is
    local_timezone: Optional[str] = None
    cors_origins: List[str] = ["http://localhost:5173"]

    class Config:
        env_file = str(BASE_DIR / ".env")

    def resolved_policy_file(self) -> Path:
        path = self.policy_file
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


settings = Settings()
