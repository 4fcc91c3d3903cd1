"""
Configuration management for the Card Delivery Service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


# Fallback used only when neither SESSION_SECRET nor JWT_SECRET is set
DEFAULT_SESSION_SECRET = "change-me-card-session-secret"


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool


@dataclass
class SessionConfig:
    """Visitor session (cookie) configuration settings."""
    secret: str
    cookie_name: str
    cookie_max_age_days: int
    secure_cookies: bool
    rotation_ceiling: int
    rotation_keep_recent: int
    default_language: str

    def __post_init__(self):
        if self.rotation_ceiling < 1:
            raise ValueError(f"rotation_ceiling must be at least 1, got {self.rotation_ceiling}")

    @property
    def cookie_max_age_seconds(self) -> int:
        return self.cookie_max_age_days * 24 * 60 * 60


@dataclass
class CacheConfig:
    """Content cache configuration settings."""
    ttl_seconds: int
    only_with_images: bool


@dataclass
class StoreConfig:
    """Backing content store configuration settings."""
    backend: str
    content_file: str
    mongo_uri: str
    mongo_database: str
    mongo_collection: str
    ensure_indexes: bool


@dataclass
class RateLimitConfig:
    """Per-IP rate limiting configuration settings."""
    enabled: bool
    window_seconds: int
    max_requests: int


@dataclass
class UiConfig:
    """Settings exposed to the frontend through /api/config."""
    show_card_stats: bool
    content_url: str


@dataclass
class PathsConfig:
    """Path configuration settings."""
    user_data_dir: str


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "card_service_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        # Load base config from file
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    # Merge file config with defaults
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        # Override with environment variables
        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 3000,
                "debug": False
            },
            "session": {
                "secret": DEFAULT_SESSION_SECRET,
                "cookie_name": "card_session",
                "cookie_max_age_days": 90,
                "secure_cookies": False,
                "rotation_ceiling": 100,
                "rotation_keep_recent": 50,
                "default_language": "en"
            },
            "cache": {
                "ttl_seconds": 300,
                "only_with_images": False
            },
            "store": {
                "backend": "json",
                "content_file": "data/content_cards.json",
                "mongo_uri": "mongodb://localhost:27017",
                "mongo_database": "test",
                "mongo_collection": "contentcards",
                "ensure_indexes": True
            },
            "rate_limit": {
                "enabled": True,
                "window_seconds": 3600,
                "max_requests": 100
            },
            "ui": {
                "show_card_stats": False,
                "content_url": "api.wisdom-ai.pro"
            },
            "paths": {
                "user_data_dir": "user_data"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config:
                if isinstance(values, dict):
                    self._config[section].update(values)
                else:
                    self._config[section] = values
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        port = os.getenv("APP_PORT") or os.getenv("PORT")
        if port:
            self._config["app"]["port"] = int(port)

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        # Session settings
        secret = os.getenv("SESSION_SECRET") or os.getenv("JWT_SECRET")
        if secret:
            self._config["session"]["secret"] = secret

        if os.getenv("SESSION_COOKIE_NAME"):
            self._config["session"]["cookie_name"] = os.getenv("SESSION_COOKIE_NAME")

        secure = _env_flag("SECURE_COOKIES")
        if secure is not None:
            self._config["session"]["secure_cookies"] = secure
        elif "production" in (os.getenv("APP_ENV", ""), os.getenv("NODE_ENV", "")):
            self._config["session"]["secure_cookies"] = True

        if os.getenv("ROTATION_CEILING"):
            self._config["session"]["rotation_ceiling"] = int(os.getenv("ROTATION_CEILING"))

        # Cache settings
        if os.getenv("CACHE_TTL_SECONDS"):
            self._config["cache"]["ttl_seconds"] = int(os.getenv("CACHE_TTL_SECONDS"))

        only_images = _env_flag("SHOW_ONLY_CARDS_WITH_IMAGES")
        if only_images is not None:
            self._config["cache"]["only_with_images"] = only_images

        # Store settings
        if os.getenv("CONTENT_BACKEND"):
            self._config["store"]["backend"] = os.getenv("CONTENT_BACKEND").lower()

        if os.getenv("CONTENT_FILE"):
            self._config["store"]["content_file"] = os.getenv("CONTENT_FILE")

        if os.getenv("MONGO_URI"):
            self._config["store"]["mongo_uri"] = os.getenv("MONGO_URI")

        if os.getenv("MONGO_DB"):
            self._config["store"]["mongo_database"] = os.getenv("MONGO_DB")

        if os.getenv("MONGO_COLLECTION"):
            self._config["store"]["mongo_collection"] = os.getenv("MONGO_COLLECTION")

        # Rate limit settings
        enabled = _env_flag("RATE_LIMIT_ENABLED")
        if enabled is not None:
            self._config["rate_limit"]["enabled"] = enabled

        if os.getenv("RATE_LIMIT_WINDOW_SECONDS"):
            self._config["rate_limit"]["window_seconds"] = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS"))

        if os.getenv("RATE_LIMIT_MAX_REQUESTS"):
            self._config["rate_limit"]["max_requests"] = int(os.getenv("RATE_LIMIT_MAX_REQUESTS"))

        # UI settings
        show_stats = _env_flag("SHOW_CARD_STATS")
        if show_stats is not None:
            self._config["ui"]["show_card_stats"] = show_stats

        if os.getenv("CONTENT_URL"):
            self._config["ui"]["content_url"] = os.getenv("CONTENT_URL")

        # Paths
        if os.getenv("USER_DATA_DIR"):
            self._config["paths"]["user_data_dir"] = os.getenv("USER_DATA_DIR")

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"]
        )

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        session_config = self._config["session"]
        return SessionConfig(
            secret=session_config["secret"],
            cookie_name=session_config["cookie_name"],
            cookie_max_age_days=session_config["cookie_max_age_days"],
            secure_cookies=session_config["secure_cookies"],
            rotation_ceiling=session_config["rotation_ceiling"],
            rotation_keep_recent=session_config["rotation_keep_recent"],
            default_language=session_config["default_language"]
        )

    def get_cache_config(self) -> CacheConfig:
        """Get content cache configuration."""
        cache_config = self._config["cache"]
        return CacheConfig(
            ttl_seconds=cache_config["ttl_seconds"],
            only_with_images=cache_config["only_with_images"]
        )

    def get_store_config(self) -> StoreConfig:
        """Get content store configuration."""
        store_config = self._config["store"]
        return StoreConfig(
            backend=store_config["backend"],
            content_file=store_config["content_file"],
            mongo_uri=store_config["mongo_uri"],
            mongo_database=store_config["mongo_database"],
            mongo_collection=store_config["mongo_collection"],
            ensure_indexes=store_config["ensure_indexes"]
        )

    def get_rate_limit_config(self) -> RateLimitConfig:
        """Get rate limiting configuration."""
        rl_config = self._config["rate_limit"]
        return RateLimitConfig(
            enabled=rl_config["enabled"],
            window_seconds=rl_config["window_seconds"],
            max_requests=rl_config["max_requests"]
        )

    def get_ui_config(self) -> UiConfig:
        """Get frontend-facing configuration."""
        ui_config = self._config["ui"]
        return UiConfig(
            show_card_stats=ui_config["show_card_stats"],
            content_url=ui_config["content_url"]
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        paths_config = self._config["paths"]
        return PathsConfig(
            user_data_dir=paths_config["user_data_dir"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_session_config() -> SessionConfig:
    """Get session configuration."""
    return config_manager.get_session_config()


def get_cache_config() -> CacheConfig:
    """Get content cache configuration."""
    return config_manager.get_cache_config()


def get_store_config() -> StoreConfig:
    """Get content store configuration."""
    return config_manager.get_store_config()


def get_rate_limit_config() -> RateLimitConfig:
    """Get rate limiting configuration."""
    return config_manager.get_rate_limit_config()


def get_ui_config() -> UiConfig:
    """Get frontend-facing configuration."""
    return config_manager.get_ui_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
