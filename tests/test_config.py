"""Tests for configuration loading."""

import pytest

from appcatalog.config.settings import Config, TeamConfig


def write_config(tmp_path, content: str) -> str:
    path = tmp_path / "catalog.yaml"
    path.write_text(content)
    return str(path)


def test_missing_environment(monkeypatch):
    monkeypatch.delenv("CATALOG_CONFIG", raising=False)
    with pytest.raises(ValueError):
        Config()


def test_missing_file(tmp_path):
    config = Config(str(tmp_path / "missing.yaml"))
    with pytest.raises(FileNotFoundError):
        config.catalog_config


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("CATALOG_CONFIG", write_config(tmp_path, "DB_URI: postgresql://localhost/catalog\n"))
    config = Config()

    assert config.database_uri == "postgresql://localhost/catalog"
    assert config.index_name == "catalog_applications"
    assert config.storage_config == ['LocalStorage', {'storage_path': '/var/lib/appcatalog/repository'}]
    assert config.catalog_url is None
    assert config.cache_refresh_interval == 300.0
    assert config.auth_enabled is False
    assert config.team_config == TeamConfig()


def test_full_configuration(tmp_path):
    path = write_config(tmp_path, """
DB_URI: postgresql://localhost/catalog
INDEX_NAME: apps
STORAGE_CONFIG:
  - LocalStorage
  - storage_path: /data/apps
CATALOG_URL: catalog.example.com
CACHE_REFRESH_INTERVAL: 30
AUTH_ENABLED: true
TEAM_CONFIG:
  enabled: true
  privileged_users: [alice]
  team_namespaces: platform tools
""")
    config = Config(path)

    assert config.index_name == "apps"
    assert config.storage_config == ['LocalStorage', {'storage_path': '/data/apps'}]
    assert config.catalog_url == "catalog.example.com"
    assert config.cache_refresh_interval == 30.0
    assert config.auth_enabled is True
    assert config.team_config.privileged_users == ["alice"]
    assert config.team_config.team_namespaces == ["platform", "tools"]


def test_missing_database_uri(tmp_path):
    config = Config(write_config(tmp_path, "INDEX_NAME: apps\n"))
    with pytest.raises(ValueError):
        config.database_uri


def test_refresh_interval_must_be_positive(tmp_path):
    config = Config(write_config(tmp_path, "CACHE_REFRESH_INTERVAL: 0\n"))
    with pytest.raises(ValueError):
        config.cache_refresh_interval


def test_unsupported_storage_driver(tmp_path):
    config = Config(write_config(tmp_path, "STORAGE_CONFIG: [FtpStorage, {}]\n"))
    with pytest.raises(ValueError):
        config.storage_config


def test_s3_storage_needs_credentials(tmp_path, monkeypatch):
    monkeypatch.delenv("S3_ACCESS_KEY_ID", raising=False)
    monkeypatch.delenv("S3_SECRET_ACCESS_KEY", raising=False)
    config = Config(write_config(tmp_path, "STORAGE_CONFIG: [S3Storage, {s3_bucket: apps}]\n"))
    with pytest.raises(ValueError):
        config.storage_config

    monkeypatch.setenv("S3_ACCESS_KEY_ID", "key")
    monkeypatch.setenv("S3_SECRET_ACCESS_KEY", "secret")
    assert config.storage_config == ['S3Storage', {'s3_bucket': 'apps'}]


def test_enabled_team_config_needs_lists(tmp_path):
    config = Config(write_config(tmp_path, "TEAM_CONFIG: {enabled: true, privileged_users: [alice]}\n"))
    with pytest.raises(ValueError):
        config.team_config
