"""Database configuration and credentials management for the ledger backends"""
from dataclasses import dataclass
from urllib.parse import quote_plus

from fangov_ledger.config import Settings

# Backend-specific database configurations
MEMORY_CONFIG = {
    'URL': 'sqlite+pysqlite:///:memory:',
    'SERIALIZE_SESSIONS': True,
}

RELATIONAL_CONFIG = {
    'DRIVER': 'postgresql+psycopg2',
    'SERIALIZE_SESSIONS': False,
}

def determine_backend_config(settings: Settings) -> dict:
    """Determine database configuration based on LEDGER_BACKEND."""
    if settings.LEDGER_BACKEND == 'memory':
        return MEMORY_CONFIG
    elif settings.LEDGER_BACKEND == 'relational':
        return RELATIONAL_CONFIG
    else:
        raise ValueError(f"Invalid LEDGER_BACKEND {settings.LEDGER_BACKEND}. Must be 'memory' or 'relational'")

@dataclass
class DatabaseCredentials:
    """Database credentials container with validation"""
    host: str
    port: str
    name: str
    user: str
    password: str
    ssl_mode: str = 'require'
    driver: str = RELATIONAL_CONFIG['DRIVER']

    def to_connection_string(self) -> str:
        """Generate database connection string with proper escaping"""
        return (
            f"{self.driver}://{quote_plus(self.user)}:{quote_plus(self.password)}@{self.host}:{self.port}/"
            f"{self.name}?sslmode={self.ssl_mode}"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> 'DatabaseCredentials':
        """Create credentials from settings"""
        relational = settings.relational_settings
        if not relational.password:
            raise ValueError("DB_PASSWORD setting is required for the relational backend")
        return cls(
            host=relational.host,
            port=relational.port,
            name=relational.name,
            user=relational.user,
            password=relational.password,
            ssl_mode=relational.ssl_mode
        )

@dataclass
class ConnectionTarget:
    """Resolved engine URL and whether sessions on it must be serialized"""
    url: str
    serialize_sessions: bool

    @property
    def is_sqlite_memory(self) -> bool:
        return self.url.startswith('sqlite') and ':memory:' in self.url

class DatabaseManager:
    """Resolves which database the ledger talks to"""

    @staticmethod
    def resolve(settings: Settings) -> ConnectionTarget:
        """
        Resolve the connection target from settings

        Args:
            settings: Application settings

        Returns:
            Connection target for the configured backend

        Raises:
            ValueError: If the relational backend is missing credentials
        """
        config = determine_backend_config(settings)
        if settings.DATABASE_URL:
            url = settings.DATABASE_URL
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            return ConnectionTarget(url=url, serialize_sessions=url.startswith('sqlite'))

        if settings.LEDGER_BACKEND == 'memory':
            return ConnectionTarget(url=config['URL'], serialize_sessions=config['SERIALIZE_SESSIONS'])

        credentials = DatabaseCredentials.from_settings(settings)
        return ConnectionTarget(
            url=credentials.to_connection_string(),
            serialize_sessions=config['SERIALIZE_SESSIONS']
        )
