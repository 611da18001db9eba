"""
Configuration Manager for META Storage

Handles the service port, storage root, credentials file location, CORS and
logging settings, with environment file loading and validation.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)

REQUIRED_PATH_SETTINGS = ('STORAGE_DIR', 'CREDENTIALS_FILE')


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


class ConfigManager:
    """
    Central configuration management for META Storage.

    Provides:
    - Port and bind host for the HTTP service
    - Storage root and credentials file locations
    - Environment file loading with precedence
    - Configuration validation
    """

    DEFAULTS = {
        'STORAGE_PORT': '5020',
        'STORAGE_HOST': '0.0.0.0',
        'STORAGE_DIR': './storage_data',
        'STORAGE_CREATE_DIR': 'true',
        'CREDENTIALS_FILE': './auth.json',
        'ALLOWED_CORS': '*',
        'LOG_LEVEL': 'INFO',
        'STORAGE_OBJECT_LOCKS': 'true',
    }

    VALID_LOG_LEVELS = ['CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG']

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigManager.

        Args:
            config_dir: Directory containing environment files

        Raises:
            ConfigValidationError: If a configured value is invalid
        """
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()

        self._env_vars: Dict[str, str] = {}

        self._load_env_files()
        self._validate()

    def _load_env_files(self):
        """Load environment files with precedence: .env.prod > .env.staging > .env.dev > .env"""
        env = os.getenv('ENV', 'dev')

        env_files = ['.env']
        if env in ['dev', 'staging', 'prod']:
            env_files.append('.env.dev')
        if env in ['staging', 'prod']:
            env_files.append('.env.staging')
        if env == 'prod':
            env_files.append('.env.prod')

        # Later files override earlier ones
        for env_file in env_files:
            env_path = self.config_dir / env_file
            if env_path.exists():
                self._load_env_file(env_path)

    def _load_env_file(self, env_path: Path):
        """Load a single environment file into our internal env_vars dict."""
        try:
            with open(env_path, 'r') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        self._env_vars[key.strip()] = value.strip()
        except OSError as e:
            raise ConfigValidationError(f"Cannot read environment file {env_path}: {e}")

    def _validate(self):
        """Validate every setting eagerly so bad config fails at startup."""
        self.get_port()
        self.get_log_level()
        self._get_bool('STORAGE_CREATE_DIR')
        self._get_bool('STORAGE_OBJECT_LOCKS')
        for key in REQUIRED_PATH_SETTINGS:
            value = self._explicit_setting(key)
            if value is not None and not value.strip():
                raise ConfigValidationError(f"{key} must not be empty")

    def _explicit_setting(self, key: str) -> Optional[str]:
        """Value set in os.environ or an env file, ignoring built-in defaults."""
        if key in os.environ:
            return os.environ[key]
        return self._env_vars.get(key)

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a raw setting: os.environ first, then env files, then built-in default."""
        value = os.getenv(key) or self._env_vars.get(key)
        if value is None:
            value = default if default is not None else self.DEFAULTS.get(key)
        return value

    def _get_bool(self, key: str) -> bool:
        value = self.get_setting(key).strip().lower()
        if value in ('true', '1', 'yes'):
            return True
        if value in ('false', '0', 'no'):
            return False
        raise ConfigValidationError(f"Invalid {key}: '{value}' - must be true or false")

    def get_port(self) -> int:
        """Get the configured HTTP port."""
        env_value = self.get_setting('STORAGE_PORT')
        try:
            port = int(env_value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid STORAGE_PORT: '{env_value}' - storage port must be a number between 1 and 65535"
            )
        if not (1 <= port <= 65535):
            raise ConfigValidationError(
                f"Invalid STORAGE_PORT: '{env_value}' - storage port must be between 1 and 65535"
            )
        return port

    def get_log_level(self) -> str:
        """Get the configured root logging level name."""
        level = self.get_setting('LOG_LEVEL').upper()
        if level not in self.VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"Invalid LOG_LEVEL: '{level}' - must be one of {self.VALID_LOG_LEVELS}"
            )
        return level

    @property
    def host(self) -> str:
        """Get the bind host."""
        return self.get_setting('STORAGE_HOST')

    @property
    def storage_dir(self) -> str:
        """Get the storage root directory."""
        return self.get_setting('STORAGE_DIR')

    @property
    def create_storage_dir(self) -> bool:
        """Whether bootstrap creates the storage root when it is missing."""
        return self._get_bool('STORAGE_CREATE_DIR')

    @property
    def credentials_file(self) -> str:
        """Get the credentials JSON file path."""
        return self.get_setting('CREDENTIALS_FILE')

    @property
    def object_locks_enabled(self) -> bool:
        """Whether writes and deletes are serialized per object id."""
        return self._get_bool('STORAGE_OBJECT_LOCKS')

    @property
    def allowed_origins(self) -> List[str]:
        """Get CORS origins."""
        origins = self.get_setting('ALLOWED_CORS')
        return [origin.strip() for origin in origins.split(',') if origin.strip()] or ['*']
