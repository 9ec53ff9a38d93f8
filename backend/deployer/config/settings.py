"""
Configuration Module

Provides centralized configuration management for the application.
Supports YAML config files with environment variable overrides for secrets.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List
from functools import lru_cache
from pydantic_settings import BaseSettings


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries. Override values take precedence.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config() -> Dict[str, Any]:
    """
    Load configuration from YAML files with local override support.

    Loading order:
    1. Load config.yaml (or config.example.yaml as fallback) as base configuration
    2. If config.local.yaml exists, merge it with base (local values override base)
    3. Return merged configuration

    Returns:
        Dictionary containing all configuration values
    """
    config_dir = Path(__file__).parent
    config_path = config_dir / "config.yaml"

    if not config_path.exists():
        config_path = config_dir / "config.example.yaml"
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found. Please create {config_dir / 'config.yaml'} "
                f"based on {config_dir / 'config.example.yaml'}"
            )

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            base_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML configuration: {e}")

    local_config_path = config_dir / "config.local.yaml"
    if local_config_path.exists():
        try:
            with open(local_config_path, 'r', encoding='utf-8') as f:
                local_config = yaml.safe_load(f) or {}
            return deep_merge(base_config, local_config)
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing local YAML configuration: {e}")

    return base_config


# Load configuration
_config = load_yaml_config()


# ============================================================================
# Database Configuration
# ============================================================================

class DatabaseConfig:
    """Database configuration management"""

    _db_config = _config.get("database", {})

    HOST = _db_config.get("host", "localhost")
    PORT = _db_config.get("port", 3306)
    USER = _db_config.get("user", "root")
    PASSWORD = _db_config.get("password", "")
    NAME = _db_config.get("name", "deployer")

    POOL_SIZE = _db_config.get("pool_size", 5)
    MAX_OVERFLOW = _db_config.get("max_overflow", 10)
    POOL_RECYCLE = _db_config.get("pool_recycle", 3600)

    # Full async URL override, e.g. sqlite+aiosqlite:///./deployer.db
    URL = os.environ.get("DATABASE_URL") or _db_config.get("url", "")

    @classmethod
    def get_async_database_url(cls) -> str:
        if cls.URL:
            return cls.URL
        return f"mysql+aiomysql://{cls.USER}:{cls.PASSWORD}@{cls.HOST}:{cls.PORT}/{cls.NAME}"

    @classmethod
    def is_sqlite(cls) -> bool:
        return cls.get_async_database_url().startswith("sqlite")


# ============================================================================
# Server Configuration
# ============================================================================

class ServerConfig:
    """Server configuration management"""

    _server_config = _config.get("server", {})

    HOST = _server_config.get("host", "0.0.0.0")
    PORT = _server_config.get("port", 8080)
    RELOAD = _server_config.get("reload", False)
    DEBUG = _server_config.get("debug", False)
    CORS_ORIGINS = _server_config.get("cors_origins", ["http://localhost:3000"])


# ============================================================================
# Object Storage Configuration
# ============================================================================

class StorageConfig:
    """S3-compatible object storage (MinIO) configuration"""

    _storage_config = _config.get("storage", {})

    ENDPOINT = os.environ.get("MINIO_ENDPOINT") or _storage_config.get("endpoint", "localhost:9000")
    ACCESS_KEY = os.environ.get("MINIO_ACCESS_KEY") or _storage_config.get("access_key", "")
    SECRET_KEY = os.environ.get("MINIO_SECRET_KEY") or _storage_config.get("secret_key", "")
    USE_SSL = str(os.environ.get("MINIO_USE_SSL", _storage_config.get("use_ssl", False))).lower() == "true"
    REGION = _storage_config.get("region", "us-east-1")
    CONNECT_TIMEOUT = _storage_config.get("connect_timeout", 10)
    READ_TIMEOUT = _storage_config.get("read_timeout", 60)

    @classmethod
    def get_endpoint_url(cls) -> str:
        if cls.ENDPOINT.startswith("http://") or cls.ENDPOINT.startswith("https://"):
            return cls.ENDPOINT
        scheme = "https" if cls.USE_SSL else "http"
        return f"{scheme}://{cls.ENDPOINT}"


# ============================================================================
# Deployment Configuration
# ============================================================================

MIB = 1024 * 1024


class DeployConfig:
    """Deployment engine configuration: public domain, snapshot layout, quotas"""

    _deploy_config = _config.get("deploy", {})

    DOMAIN = os.environ.get("DEPLOY_DOMAIN") or _deploy_config.get("domain", "localhost")
    SNAPSHOT_PREFIX = _deploy_config.get("snapshot_prefix", "_deployments/")

    MAX_FILE_BYTES = _deploy_config.get("max_file_mb", 50) * MIB
    MAX_DEPLOYMENT_BYTES = _deploy_config.get("max_deployment_mb", 200) * MIB
    MAX_USER_BYTES = _deploy_config.get("max_user_mb", 500) * MIB

    # Request-scoped deadline for one deploy or rollback, in seconds. 0 disables it.
    REQUEST_TIMEOUT = _deploy_config.get("request_timeout", 600)

    # Extra extensions appended to the built-in static-asset allow-list
    EXTRA_EXTENSIONS = _deploy_config.get("extra_extensions", [])

    @classmethod
    def get_site_url(cls, project_name: str) -> str:
        return f"http://{project_name}.{cls.DOMAIN}"


# ============================================================================
# JWT Configuration
# ============================================================================

class JWTConfig:
    """JWT configuration for principal extraction"""

    _jwt_config = _config.get("jwt", {})

    SECRET_KEY = os.environ.get("JWT_SECRET") or _jwt_config.get("secret_key", "")
    ALGORITHM = _jwt_config.get("algorithm", "HS256")
    USER_ID_CLAIM = _jwt_config.get("user_id_claim", "user_id")


# ============================================================================
# Pydantic Settings
# ============================================================================

class Settings(BaseSettings):
    """Application settings with validation"""

    app_name: str = "Deployer"
    debug: bool = ServerConfig.DEBUG

    database_url: str = DatabaseConfig.get_async_database_url()

    storage_endpoint: str = StorageConfig.get_endpoint_url()
    storage_region: str = StorageConfig.REGION

    deploy_domain: str = DeployConfig.DOMAIN
    snapshot_prefix: str = DeployConfig.SNAPSHOT_PREFIX
    max_file_bytes: int = DeployConfig.MAX_FILE_BYTES
    max_deployment_bytes: int = DeployConfig.MAX_DEPLOYMENT_BYTES
    max_user_bytes: int = DeployConfig.MAX_USER_BYTES
    request_timeout: float = DeployConfig.REQUEST_TIMEOUT

    host: str = ServerConfig.HOST
    port: int = ServerConfig.PORT
    cors_origins: List[str] = ServerConfig.CORS_ORIGINS

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


__all__ = [
    "load_yaml_config",
    "DatabaseConfig",
    "ServerConfig",
    "StorageConfig",
    "DeployConfig",
    "JWTConfig",
    "Settings",
    "get_settings",
]
