"""
Configuration loader for the Realty API.

Looks for config.yaml in this order:
1. Explicit path passed to Config()
2. Environment variable CONFIG_PATH
3. ./config.yaml (local development)
4. Falls back to default config
"""

import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_TTL_BY_PREFIX: dict[str, float] = {
    "/api/properties/featured": 300,
    "/api/properties": 120,
    "/api/blog": 600,
    "/api/developers": 1800,
    "/api/team": 3600,
}


class Config:
    def __init__(self, config_path: str | os.PathLike[str] | None = None):
        # Determine config path in order of priority
        if config_path:
            self.config_path = Path(config_path)
        elif os.getenv("CONFIG_PATH"):
            self.config_path = Path(os.getenv("CONFIG_PATH"))
        elif Path("./config.yaml").exists():
            self.config_path = Path("./config.yaml")
        else:
            # No config found, will use defaults
            self.config_path = None

        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """
        Load configuration from the YAML file.

        Returns default config if file not found.
        """
        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
                    print(f"✓ Loaded config from: {self.config_path}")
                    return config_data
            except Exception as e:
                print(f"✗ Error loading config from {self.config_path}: {e}")
        else:
            print("⚠ Config file not found, using defaults")
            if self.config_path:
                print(f"  Tried: {self.config_path}")

        return {
            "app": {
                "server": {"host": "0.0.0.0", "port": 8000},
                "api_prefix": "/api",
                "cache": {
                    "enabled": True,
                    "default_ttl_seconds": 60,
                    "sweep_interval_seconds": 300,
                    "ttl_by_prefix": dict(DEFAULT_TTL_BY_PREFIX),
                },
                "client": {
                    "base_url": "http://localhost:8000",
                    "timeout_seconds": 30,
                    "cache_ttl_seconds": 300,
                    "sweep_interval_seconds": 60,
                },
                "fetching": {
                    "cache_time_seconds": 300,
                    "deduping_interval_seconds": 2,
                    "revalidate_on_focus": True,
                    "revalidate_on_reconnect": True,
                },
            }
        }

    @property
    def server_host(self) -> str:
        return self._config.get("app", {}).get("server", {}).get("host", "0.0.0.0")

    @property
    def server_port(self) -> int:
        env_port = os.getenv("PORT")
        if env_port:
            return int(env_port)
        return self._config.get("app", {}).get("server", {}).get("port", 8000)

    @property
    def api_prefix(self) -> str:
        """Path prefix under which GET responses may be cached."""
        return self._config.get("app", {}).get("api_prefix", "/api")

    # =========================================================================
    # Server response cache
    # =========================================================================

    @property
    def response_cache_enabled(self) -> bool:
        """
        Whether ResponseCacheMiddleware is installed.

        RESPONSE_CACHE_ENABLED=0 or false turns it off regardless of the file.
        """
        env_flag = os.getenv("RESPONSE_CACHE_ENABLED")
        if env_flag is not None:
            return env_flag.strip().lower() not in ("0", "false", "no", "off")
        return bool(self._config.get("app", {}).get("cache", {}).get("enabled", True))

    @property
    def cache_default_ttl(self) -> float:
        return self._config.get("app", {}).get("cache", {}).get("default_ttl_seconds", 60)

    @property
    def cache_sweep_interval(self) -> float:
        return self._config.get("app", {}).get("cache", {}).get("sweep_interval_seconds", 300)

    @property
    def cache_ttl_by_prefix(self) -> dict[str, float]:
        """Per-prefix TTLs in seconds; the most specific matching prefix wins."""
        table = self._config.get("app", {}).get("cache", {}).get("ttl_by_prefix")
        if not isinstance(table, dict):
            return dict(DEFAULT_TTL_BY_PREFIX)
        return {str(prefix): float(ttl) for prefix, ttl in table.items()}

    # =========================================================================
    # API client
    # =========================================================================

    @property
    def api_base_url(self) -> str:
        env_url = os.getenv("API_BASE_URL")
        if env_url:
            return env_url
        return (
            self._config.get("app", {})
            .get("client", {})
            .get("base_url", "http://localhost:8000")
        )

    @property
    def client_timeout(self) -> float:
        return self._config.get("app", {}).get("client", {}).get("timeout_seconds", 30)

    @property
    def client_cache_ttl(self) -> float:
        return self._config.get("app", {}).get("client", {}).get("cache_ttl_seconds", 300)

    @property
    def client_sweep_interval(self) -> float:
        return self._config.get("app", {}).get("client", {}).get("sweep_interval_seconds", 60)

    # =========================================================================
    # Data fetching defaults
    # =========================================================================

    @property
    def fetch_cache_time(self) -> float:
        return self._config.get("app", {}).get("fetching", {}).get("cache_time_seconds", 300)

    @property
    def fetch_deduping_interval(self) -> float:
        return (
            self._config.get("app", {}).get("fetching", {}).get("deduping_interval_seconds", 2)
        )

    @property
    def fetch_revalidate_on_focus(self) -> bool:
        return self._config.get("app", {}).get("fetching", {}).get("revalidate_on_focus", True)

    @property
    def fetch_revalidate_on_reconnect(self) -> bool:
        return (
            self._config.get("app", {}).get("fetching", {}).get("revalidate_on_reconnect", True)
        )


# Global config instance used when no explicit settings are passed
config = Config()
