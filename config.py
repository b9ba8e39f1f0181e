"""Configuration management with environment variable support."""

import os
from dataclasses import dataclass, field
from decimal import Decimal

from core.rules import TableRules


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", "true"))
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "120"))
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    enabled: bool = field(default_factory=lambda: _env_flag("REDIS_ENABLED", "false"))
    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class TableConfig:
    """Table rules and seating, overridable per deployment."""

    num_decks: int = field(default_factory=lambda: int(os.getenv("NUM_DECKS", "1")))
    playing_positions: int = field(
        default_factory=lambda: int(os.getenv("PLAYING_POSITIONS", "7"))
    )
    simultaneous_bets_allowed: int = field(
        default_factory=lambda: int(os.getenv("SIMULTANEOUS_BETS_ALLOWED", "2"))
    )
    starting_money: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("STARTING_MONEY", "1000"))
    )
    dealer_hits_soft_17: bool = field(
        default_factory=lambda: _env_flag("DEALER_HITS_SOFT_17", "false")
    )
    blackjack_payout: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("BLACKJACK_PAYOUT", "1.5"))
    )
    surrender_refund: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("SURRENDER_REFUND", "0.5"))
    )

    def to_rules(self) -> TableRules:
        """Build the core rule set from this configuration."""
        return TableRules(
            num_decks=self.num_decks,
            playing_positions=self.playing_positions,
            simultaneous_bets_allowed=self.simultaneous_bets_allowed,
            dealer_hits_soft_17=self.dealer_hits_soft_17,
            blackjack_payout=self.blackjack_payout,
            surrender_refund=self.surrender_refund,
        )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    redis: RedisConfig = field(default_factory=RedisConfig)
    table: TableConfig = field(default_factory=TableConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)


# Global configuration instance
config = AppConfig()
