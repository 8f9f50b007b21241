"""Application settings loaded from the environment or a .env file"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    secret_key: str = "your-secret-key-keep-it-secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Whether COMPLETED reservations keep their slot occupied
    completed_blocks_slot: bool = True

    # Bootstrap administrator seeded at startup
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"
    admin_name: str = "Admin User"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "RESTAURANT_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
