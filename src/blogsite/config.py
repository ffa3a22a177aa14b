"""
# Configuration Management Module

This module provides the configuration system for the blog service. It is built on
**Pydantic Settings**, loading values from a config file or the environment and
validating them once at import time.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. BLOGSITE_CONFIG_PATH (custom config file path)          │
├─────────────────────────────────────────────────────────────┤
│  3. .blogsite file (project root)                           │
├─────────────────────────────────────────────────────────────┤
│  4. .env file (project root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

## Configuration Groups

| Group | Purpose |
|-------|---------|
| **Server** | Host, port, debug mode, log level |
| **Database (MongoDB)** | Connection URL, database name, timeouts, collection names |
| **Authentication** | JWT signing key, algorithm, token lifetime |
| **Admin Provisioning** | Trust-on-first-login switch and optional allow-list |
| **Content** | Category catalogue shown by the reader UI |
| **CORS / Metrics** | Browser origins and Prometheus exposure |

## Usage

```python
from blogsite.config import settings

collection_name = settings.BLOGS_COLLECTION
secret = settings.SECRET_KEY.get_secret_value()
```

## Module Attributes

Attributes:
    CONFIG_PATH (Optional[str]): The config file picked by `get_config_path()`, if any.
    settings (Settings): Global settings instance.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
BLOGSITE_FILENAME: str = ".blogsite"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "BLOGSITE_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `BLOGSITE_CONFIG_PATH` (if set and file exists).
    2.  **Project Config**: `.blogsite` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, which means environment-variable-only mode.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    project_path: Path = PROJECT_ROOT / BLOGSITE_FILENAME
    if project_path.exists():
        return str(project_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Validation:**
    `SECRET_KEY` must be provided and must not look like a placeholder, and
    `MONGODB_URL` must not be blank. Both are checked when the module is imported,
    so a misconfigured deployment fails at startup rather than on first request.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "blogsite"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Collections
    BLOGS_COLLECTION: str = "blogs"
    ADMINS_COLLECTION: str = "admins"
    USERS_COLLECTION: str = "users"
    REVOKED_TOKENS_COLLECTION: str = "revoked_tokens"

    # JWT configuration
    SECRET_KEY: SecretStr = Field(default=SecretStr(""), validate_default=True)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Admin provisioning: any identity that signs in becomes an admin on first
    # login unless this is switched off or the allow-list excludes the email.
    ADMIN_AUTO_PROVISION: bool = True
    ADMIN_ALLOWED_EMAILS: Optional[str] = None

    # Content
    BLOG_CATEGORIES: str = "Tech,Design,Business,Lifestyle,Data Science,Tutorial"

    # CORS / metrics
    CORS_ORIGINS: Optional[str] = None
    METRICS_ENABLED: bool = True

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def no_hardcoded_secrets(cls, v: Any, info: Any) -> Any:
        """
        Rejects empty secrets and obvious placeholders ("change", "0000").

        Raises:
            ValueError: If the value is empty or a placeholder.
        """
        raw = v.get_secret_value() if isinstance(v, SecretStr) else v
        if not raw or "change" in str(raw).lower() or "0000" in str(raw) or not str(raw).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .blogsite and not hardcoded!")
        return v

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .blogsite and not empty!")
        return v

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @property
    def blog_categories_list(self) -> List[str]:
        """Category catalogue as a list, in configured order."""
        return [c.strip() for c in self.BLOG_CATEGORIES.split(",") if c.strip()]

    @property
    def admin_allowed_emails_list(self) -> List[str]:
        """Lower-cased allow-list; empty means every authenticated identity is eligible."""
        if not self.ADMIN_ALLOWED_EMAILS:
            return []
        return [e.strip().lower() for e in self.ADMIN_ALLOWED_EMAILS.split(",") if e.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        origins = ["http://localhost:3000", "http://localhost:5173"]
        if self.CORS_ORIGINS:
            origins.extend(o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip())
        return origins


# Global settings instance
settings: Settings = Settings()
