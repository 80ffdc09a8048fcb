"""Configuration management utilities for the stocks RPC server."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_SETTINGS_PATH = PROJECT_ROOT / "config" / "default_settings.json"
USER_SETTINGS_PATH = PROJECT_ROOT / "config" / "settings.local.json"

# Conventional variable honoured in addition to the prefixed overrides.
API_KEY_ENV = "ALPHA_VANTAGE_API_KEY"

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class ConfigError(Exception):
    """Raised when configuration files are missing or invalid."""


@dataclass
class AlphaVantageConfig:
    api_key: Optional[str]
    base_url: str
    timeout: float = 15.0
    max_response_bytes: int = 16 * 1024 * 1024


@dataclass
class ServerConfig:
    echo_requests: bool = True
    log_level: str = "INFO"


@dataclass
class StocksRpcConfig:
    alpha_vantage: AlphaVantageConfig
    server: ServerConfig


class ConfigManager:
    """Loads and validates configuration data from files and environment variables."""

    def __init__(
        self,
        default_path: Path | str = DEFAULT_SETTINGS_PATH,
        user_path: Path | str = USER_SETTINGS_PATH,
        env_prefix: str = "STOCKS_RPC_",
    ) -> None:
        self.default_path = Path(default_path)
        self.user_path = Path(user_path)
        self.env_prefix = env_prefix
        self._cached_config: Optional[StocksRpcConfig] = None

    def load(self, force_reload: bool = False) -> StocksRpcConfig:
        """Load configuration from defaults, user overrides, and environment."""
        if self._cached_config is not None and not force_reload:
            return self._cached_config

        base_config = self._load_default_config()
        merged_config = self._merge_user_overrides(base_config)
        merged_config = self._apply_env_overrides(merged_config)

        config = self._build_config(merged_config)
        self._validate_config(config)

        self._cached_config = config
        return config

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------
    def _load_default_config(self) -> Dict[str, Any]:
        if not self.default_path.exists():
            raise ConfigError(f"Default configuration file not found: {self.default_path}")

        with self.default_path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Unable to parse default configuration: {exc}") from exc

    def _merge_user_overrides(self, base: Dict[str, Any]) -> Dict[str, Any]:
        data = json.loads(json.dumps(base))  # deep copy via JSON to keep types JSON-compatible
        if self.user_path.exists():
            with self.user_path.open("r", encoding="utf-8") as handle:
                try:
                    overrides = json.load(handle)
                except json.JSONDecodeError as exc:
                    raise ConfigError(f"Unable to parse user configuration: {exc}") from exc
            self._deep_merge(data, overrides)
        return data

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = json.loads(json.dumps(data))
        api_key = os.environ.get(API_KEY_ENV)
        if api_key:
            self._set_nested_value(result, ["alpha_vantage", "api_key"], api_key.strip())

        prefix_len = len(self.env_prefix)
        for key, value in os.environ.items():
            if not key.startswith(self.env_prefix):
                continue
            path_parts = key[prefix_len:].lower().split("__")
            parsed_value = self._parse_env_value(value)
            self._set_nested_value(result, path_parts, parsed_value)
        return result

    # ------------------------------------------------------------------
    # Build dataclasses
    # ------------------------------------------------------------------
    def _build_config(self, data: Dict[str, Any]) -> StocksRpcConfig:
        try:
            provider_data = data["alpha_vantage"]
            api_key = provider_data.get("api_key")
            alpha_vantage = AlphaVantageConfig(
                api_key=str(api_key) if api_key else None,
                base_url=str(provider_data["base_url"]),
                timeout=float(provider_data.get("timeout", 15.0)),
                max_response_bytes=int(provider_data.get("max_response_bytes", 16 * 1024 * 1024)),
            )
            server = ServerConfig(**data.get("server", {}))
        except KeyError as exc:
            raise ConfigError(f"Missing required configuration section: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration field: {exc}") from exc

        return StocksRpcConfig(alpha_vantage=alpha_vantage, server=server)

    # ------------------------------------------------------------------
    # Validation & utilities
    # ------------------------------------------------------------------
    def _validate_config(self, config: StocksRpcConfig) -> None:
        provider = config.alpha_vantage
        if not provider.base_url.startswith(("http://", "https://")):
            raise ConfigError("alpha_vantage.base_url must be an http(s) URL")
        if provider.timeout <= 0:
            raise ConfigError("alpha_vantage.timeout must be positive")
        if provider.max_response_bytes <= 0:
            raise ConfigError("alpha_vantage.max_response_bytes must be positive")

        level = str(config.server.log_level).upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"server.log_level must be one of {sorted(LOG_LEVELS)}")
        config.server.log_level = level

    @staticmethod
    def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        for key, value in overrides.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                ConfigManager._deep_merge(base[key], value)
            else:
                base[key] = value

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        value = value.strip()
        if not value:
            return value
        lowered = value.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    @staticmethod
    def _set_nested_value(target: Dict[str, Any], path_parts: list[str], value: Any) -> None:
        current = target
        for part in path_parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]
        current[path_parts[-1]] = value


def require_api_key(config: StocksRpcConfig) -> str:
    """Return the configured API key or raise :class:`ConfigError`."""
    api_key = config.alpha_vantage.api_key
    if not api_key:
        raise ConfigError(
            f"Alpha Vantage API key is not configured; set {API_KEY_ENV} or alpha_vantage.api_key"
        )
    return api_key


__all__ = [
    "API_KEY_ENV",
    "AlphaVantageConfig",
    "ConfigError",
    "ConfigManager",
    "ServerConfig",
    "StocksRpcConfig",
    "require_api_key",
]
