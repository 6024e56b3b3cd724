from app.core.config import Settings, _env_file


def test_env_file_defaults_to_dotenv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ENV_FILE", raising=False)
    assert _env_file() is None

    (tmp_path / ".env").write_text("SYNC_CONCURRENCY=4\n")
    assert _env_file() == ".env"


def test_custom_env_file_is_used_without_dotenv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    custom = tmp_path / "sync.env"
    custom.write_text("SYNC_CONCURRENCY=4\n")
    monkeypatch.setenv("ENV_FILE", str(custom))
    monkeypatch.delenv("SYNC_CONCURRENCY", raising=False)

    assert _env_file() == str(custom)
    settings = Settings(_env_file=_env_file())
    assert settings.SYNC_CONCURRENCY == 4


def test_missing_custom_env_file_is_ignored(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "absent.env"))
    assert _env_file() is None
