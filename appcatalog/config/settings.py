"""Configuration management for appcatalog."""

import os
import yaml
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


DEFAULT_INDEX_NAME = "catalog_applications"
DEFAULT_STORAGE_PATH = "/var/lib/appcatalog/repository"
DEFAULT_CACHE_REFRESH_INTERVAL = 300.0

SUPPORTED_STORAGE_DRIVERS = ['LocalStorage', 'S3Storage']


@dataclass
class TeamConfig:
    """Privileged users allowed to operate on the team namespaces."""
    enabled: bool = False
    privileged_users: List[str] = field(default_factory=list)
    team_namespaces: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TeamConfig':
        data = data or {}
        return cls(
            enabled=bool(data.get('enabled', False)),
            privileged_users=_as_list(data.get('privileged_users')),
            team_namespaces=_as_list(data.get('team_namespaces')),
        )

    def validate(self):
        """Validate the team configuration."""
        if self.enabled and (not self.privileged_users or not self.team_namespaces):
            raise ValueError("TEAM_CONFIG enabled needs privileged users and team namespaces")


def _as_list(value: Any) -> List[str]:
    """Accept a YAML list or a space separated string."""
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(item) for item in value]


class Config:
    """Configuration manager for appcatalog."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get('CATALOG_CONFIG')
        self.s3_access_key_id = os.environ.get('S3_ACCESS_KEY_ID')
        self.s3_secret_access_key = os.environ.get('S3_SECRET_ACCESS_KEY')
        self.s3_endpoint_url = os.environ.get('S3_ENDPOINT_URL')

        self._catalog_config = None
        self._validate_environment()

    def _validate_environment(self):
        """Validate required environment variables."""
        if not self.config_path:
            raise ValueError("Missing required environment variable: CATALOG_CONFIG")

    @property
    def catalog_config(self) -> Dict[str, Any]:
        """Load and cache the catalog configuration file."""
        if self._catalog_config is None:
            if not os.path.exists(self.config_path):
                raise FileNotFoundError(f"Catalog config file not found: {self.config_path}")

            with open(self.config_path, 'r') as f:
                self._catalog_config = yaml.safe_load(f) or {}

        return self._catalog_config

    @property
    def database_uri(self) -> str:
        """Get database URI from the catalog config."""
        db_config = self.catalog_config.get('DB_URI')
        if not db_config:
            raise ValueError("DB_URI not found in catalog configuration")
        return db_config

    @property
    def index_name(self) -> str:
        return self.catalog_config.get('INDEX_NAME') or DEFAULT_INDEX_NAME

    @property
    def storage_config(self) -> List[Any]:
        """Get the blob storage driver and its options."""
        storage_config = self.catalog_config.get('STORAGE_CONFIG')
        if not storage_config:
            return ['LocalStorage', {'storage_path': DEFAULT_STORAGE_PATH}]

        driver_name = storage_config[0]
        driver_config = storage_config[1] if len(storage_config) > 1 else {}
        if driver_name not in SUPPORTED_STORAGE_DRIVERS:
            raise ValueError(f"Unsupported storage driver: {driver_name}")

        if driver_name == 'S3Storage':
            missing_vars = [
                var for var in ['S3_ACCESS_KEY_ID', 'S3_SECRET_ACCESS_KEY']
                if not os.environ.get(var)
            ]
            if missing_vars:
                raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")
            if not driver_config.get('s3_bucket'):
                raise ValueError("s3_bucket not found in STORAGE_CONFIG")

        return [driver_name, driver_config]

    @property
    def catalog_url(self) -> Optional[str]:
        """Catalog URL that embedded identifiers must match, if any."""
        return self.catalog_config.get('CATALOG_URL') or None

    @property
    def cache_refresh_interval(self) -> float:
        """Seconds between two summary cache refreshes."""
        interval = float(self.catalog_config.get('CACHE_REFRESH_INTERVAL', DEFAULT_CACHE_REFRESH_INTERVAL))
        if interval <= 0:
            raise ValueError("CACHE_REFRESH_INTERVAL must be greater than 0")
        return interval

    @property
    def auth_enabled(self) -> bool:
        return bool(self.catalog_config.get('AUTH_ENABLED', False))

    @property
    def team_config(self) -> TeamConfig:
        team_config = TeamConfig.from_dict(self.catalog_config.get('TEAM_CONFIG'))
        team_config.validate()
        return team_config
