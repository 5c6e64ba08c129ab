"""Application configuration and environment settings"""
from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class RelationalSettings(BaseModel):
    """Relational backend specific settings"""
    host: str = Field(..., description="Database host")
    port: str = Field(..., description="Database port")
    name: str = Field(..., description="Database name")
    user: str = Field(..., description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    ssl_mode: str = Field("require", description="libpq sslmode")

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Backend selection
    LEDGER_BACKEND: Literal["memory", "relational"] = Field("memory", description="Ledger backend: 'memory' or 'relational'")
    DATABASE_URL: Optional[str] = Field(None, description="Explicit SQLAlchemy URL, overrides backend resolution")

    # Relational credentials
    DB_HOST: str = Field("localhost", description="Database host")
    DB_PORT: str = Field("5432", description="Database port")
    DB_NAME: str = Field("fangov", description="Database name")
    DB_USER: str = Field("fangov", description="Database user")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password")
    DB_SSL_MODE: str = Field("disable", description="libpq sslmode")

    # Ledger rules
    AMOUNT_PLACES: int = Field(8, ge=0, le=8, description="Decimal places money amounts are quantized to")
    ENFORCE_SHARE_TOTAL: bool = Field(True, description="Reject artists whose share percentages do not sum to 100")
    REVOTE_POLICY: Literal["accumulate", "replace"] = Field("accumulate", description="'accumulate' keeps every vote, 'replace' keeps the latest")
    PASSWORD_HASH_METHOD: str = Field("scrypt", description="werkzeug password hash method, e.g. 'scrypt' or 'pbkdf2:sha256:600000'")

    # Runtime
    LOG_LEVEL: str = Field("INFO", description="Root log level for the CLI")
    SEED_DEMO_DATA: bool = Field(True, description="Seed the demo ledger when running the CLI")

    @property
    def relational_settings(self) -> RelationalSettings:
        """Get relational credentials as a separate model"""
        return RelationalSettings(
            host=self.DB_HOST,
            port=self.DB_PORT,
            name=self.DB_NAME,
            user=self.DB_USER,
            password=self.DB_PASSWORD,
            ssl_mode=self.DB_SSL_MODE
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()

# Constants
SHARE_TOTAL = 100
AMOUNT_SCALE = 8    # column scale of every money and token amount
SHARE_SCALE = 2     # column scale of share percentages
