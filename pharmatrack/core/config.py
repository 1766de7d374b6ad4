from typing import List, Union
from pydantic import AnyHttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "PharmaTrack India"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    DATABASE_URL: str = "sqlite:///./pharmatrack.db"
    DEBUG: bool = False

    @model_validator(mode='after')
    def normalize_db_connection(self) -> 'Settings':
        # Heroku style URLs still say "postgres://"
        if self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self

    # Sessions
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_HOURS: int = 24
    MIN_PASSWORD_LENGTH: int = 4

    # QR tracking
    QR_HASH_SALT: str = "CHAINTRACKR_SECRET"
    QR_SCAN_HISTORY_LIMIT: int = 50
    QR_SCAN_DEDUP_SECONDS: float = 2.0

    # Drug data
    DEFAULT_SHELF_LIFE_DAYS: int = 730
    SEED_DEMO_DATA: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra='ignore')

settings = Settings()
