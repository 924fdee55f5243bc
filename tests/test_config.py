from core import config, db


def test_cors_origins(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    assert config.cors_origins() == ["http://localhost:1337"]

    monkeypatch.setenv("CORS_ORIGINS", "https://admin.example.com, http://localhost:1337,")
    assert config.cors_origins() == ["https://admin.example.com", "http://localhost:1337"]


def test_upload_settings_fall_back_on_bad_size(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_SIZE_MB", "lots")
    monkeypatch.setenv("GCS_BUCKET_NAME", " assets ")

    settings = config.upload_settings()

    assert settings.size_limit_bytes == 10 * 1024 * 1024
    assert settings.bucket_name == "assets"
    assert settings.public_files is True


def test_signed_url_ttl_must_be_positive(monkeypatch):
    monkeypatch.setenv("SIGNED_URL_TTL_MIN", "0")
    assert config.signed_url_ttl_minutes() == 15


def test_database_url_drops_sslmode(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/app?sslmode=require&application_name=admin")
    assert db.database_url() == "postgres://u:p@db:5432/app?application_name=admin"
