"""Runtime configuration"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from trainsurf.models.errors import ConfigError


@dataclass
class SurfConfig:
    """Tunables for the search engine, upstream client and HTTP surface"""

    # Upstream (RapidAPI)
    rapidapi_key: str = ""
    availability_host: str = "irctc1.p.rapidapi.com"
    route_host: str = "irctc-train-api.p.rapidapi.com"
    user_agent: str = "TrainSurf/3.0"
    request_timeout: float = 20.0
    connect_timeout: float = 5.0
    max_connections: int = 4

    # Search budget
    politeness_delay: float = 0.15
    error_backoff: float = 0.3
    soft_call_cap: int = 18
    hard_call_cap: int = 20
    max_consecutive_api_errors: int = 3
    min_segment_span: int = 2

    # Caching / diagnostics
    cache_max_entries: int = 512
    route_preview_limit: int = 20

    # Caller rate limiting (per endpoint)
    rate_limit_window: float = 60.0
    urgent_rate_limit: int = 10
    normal_rate_limit: int = 15

    # HTTP surface
    api_tokens: frozenset[str] = field(default_factory=frozenset)
    host: str = "127.0.0.1"
    port: int = 8080

    def require_api_key(self) -> str:
        if not self.rapidapi_key:
            raise ConfigError("RAPIDAPI_KEY not configured")
        return self.rapidapi_key

    @classmethod
    def from_env(cls) -> SurfConfig:
        env = os.environ
        tokens = frozenset(
            t.strip() for t in env.get("TRAINSURF_API_TOKENS", "").split(",") if t.strip()
        )
        try:
            return cls(
                rapidapi_key=env.get("RAPIDAPI_KEY", ""),
                politeness_delay=float(env.get("TRAINSURF_POLITENESS_DELAY", "0.15")),
                urgent_rate_limit=int(env.get("TRAINSURF_URGENT_RATE_LIMIT", "10")),
                normal_rate_limit=int(env.get("TRAINSURF_NORMAL_RATE_LIMIT", "15")),
                cache_max_entries=int(env.get("TRAINSURF_CACHE_MAX_ENTRIES", "512")),
                api_tokens=tokens,
                host=env.get("TRAINSURF_HOST", "127.0.0.1"),
                port=int(env.get("TRAINSURF_PORT", "8080")),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid TRAINSURF_* setting: {e}") from e
