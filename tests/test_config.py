import pytest

from config import AppConfig
from database import JsonFileStore, MemoryStore, get_store


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("STORE_BACKEND", "STORE_PATH", "DATABASE_URL", "SEED_DEMO_DATA", "LOG_LEVEL", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = AppConfig.from_env()
    assert config.store.backend == "memory"
    assert config.store.seed_demo_data is True
    assert config.cors_origins == ["*"]
    assert isinstance(get_store(config), MemoryStore)


def test_file_backend(clean_env, tmp_path):
    clean_env.setenv("STORE_BACKEND", "file")
    clean_env.setenv("STORE_PATH", str(tmp_path))
    clean_env.setenv("SEED_DEMO_DATA", "false")
    config = AppConfig.from_env()
    store = get_store(config)
    assert isinstance(store, JsonFileStore)
    assert store.load("users") == []


def test_mongo_requires_url(clean_env):
    clean_env.setenv("STORE_BACKEND", "mongo")
    with pytest.raises(KeyError):
        AppConfig.from_env()


def test_unknown_backend(clean_env):
    clean_env.setenv("STORE_BACKEND", "redis")
    with pytest.raises(ValueError):
        AppConfig.from_env()


def test_cors_origins_list(clean_env):
    clean_env.setenv("CORS_ORIGINS", "https://portal.example.com, https://admin.example.com")
    assert AppConfig.from_env().cors_origins == ["https://portal.example.com", "https://admin.example.com"]
