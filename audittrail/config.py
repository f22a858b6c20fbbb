from __future__ import annotations

import os
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    AUDIT_STORAGE_KEY,
    DEFAULT_APP_VERSION,
    DEFAULT_PAGE_SIZE,
    DEFAULT_STORAGE_PATH,
)


class StorageConfig(BaseModel):
    """Persistence backend settings."""

    backend: Literal["auto", "sqlite", "memory"] = "auto"
    path: str = DEFAULT_STORAGE_PATH
    key: str = AUDIT_STORAGE_KEY


class UserRecord(BaseModel):
    """Directory entry for the static identity verifier."""

    id: str
    username: str
    display_name: str = ""
    roles: List[str] = Field(default_factory=list)
    password_hash: str


class AuditTrailConfig(BaseModel):
    """Top-level configuration model."""

    app_version: str = DEFAULT_APP_VERSION
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    users: List[UserRecord] = Field(default_factory=list)


def load_config(path: Optional[str] = None) -> AuditTrailConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to AUDITTRAIL_CONFIG env
            variable or 'audittrail.yaml' in the current directory.
    """

    config_path = path or os.getenv("AUDITTRAIL_CONFIG", "audittrail.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = AuditTrailConfig(**data)
    else:
        config = AuditTrailConfig()

    env_path = os.getenv("AUDITTRAIL_STORAGE_PATH")
    if env_path:
        config.storage.path = env_path
    env_backend = os.getenv("AUDITTRAIL_STORAGE_BACKEND")
    if env_backend:
        config.storage.backend = StorageConfig(backend=env_backend.lower()).backend
    env_version = os.getenv("AUDITTRAIL_APP_VERSION")
    if env_version:
        config.app_version = env_version
    return config
