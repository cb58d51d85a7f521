import pytest
from sqlalchemy.pool import StaticPool

from visitorhub.config import Config, get_config, set_config


def test_defaults():
    config = Config()
    assert config.tenant_mode == "multi"
    assert config.is_multi_tenant
    assert not config.is_single_tenant
    assert config.notification_backend == "none"
    assert config.get_api_url() == "http://127.0.0.1:5000"


def test_load_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///visitors.db")
    monkeypatch.setenv("TENANT_MODE", "single")
    monkeypatch.setenv("AUTH_JWT_SECRET", "s3cr3t")
    monkeypatch.setenv("BCRYPT_ROUNDS", "5")
    monkeypatch.setenv("API_PORT", "8080")
    monkeypatch.setenv("NOTIFICATION_BACKEND", "redis")
    monkeypatch.setenv("REDIS_HOST", "redis.local")

    config = Config.load_from_config(tmp_path)

    assert config.get_db_url() == "sqlite:///visitors.db"
    assert config.is_single_tenant
    assert config.auth_jwt_secret == "s3cr3t"
    assert config.bcrypt_rounds == 5
    assert config.api_port == 8080
    assert config.redis.url == "redis://redis.local:6379"


def test_load_name_and_title_from_setup_cfg(tmp_path):
    (tmp_path / "setup.cfg").write_text("[visitorhub]\nname = lobby\ntitle = Front Desk\n")
    config = Config.load_from_config(tmp_path)
    assert config.name == "lobby"
    assert config.title == "Front Desk"


def test_invalid_tenant_mode():
    with pytest.raises(ValueError):
        Config(tenant_mode="shared")  # type: ignore


def test_invalid_notification_backend():
    with pytest.raises(ValueError):
        Config(notification_backend="carrier-pigeon")


def test_sqlite_connect_args():
    config = Config(db_url="sqlite://")
    assert config.get_db_connect_args() == {"check_same_thread": False}
    assert config.get_db_poolclass() is StaticPool

    file_db = Config(db_url="sqlite:///visitors.db")
    assert file_db.get_db_poolclass() is None

    postgres = Config(db_url="postgresql://localhost/visitors")
    assert postgres.get_db_connect_args() == {}
    assert postgres.get_db_poolclass() is None


def test_set_config_replaces_global(monkeypatch):
    config = Config(title="Replaced")
    set_config(config)
    try:
        assert get_config() is config
    finally:
        set_config(None)
