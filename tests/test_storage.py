import pytest

from core import storage


@pytest.mark.parametrize(
    "url, bucket, folder, filename",
    [
        ("https://storage.googleapis.com/assets/a/b/c.jpg", "assets", "a/b", "c.jpg"),
        ("https://storage.googleapis.com/assets/c.jpg", "assets", "", "c.jpg"),
        ("https://cdn.example.com/c.jpg", None, "", "c.jpg"),
        ("https://cdn.example.com/", None, None, None),
        (None, None, None, None),
    ],
)
def test_file_info_from_url(url, bucket, folder, filename):
    info = storage.file_info_from_url(url)
    assert (info.bucket, info.folder_path, info.filename) == (bucket, folder, filename)


def test_public_url(monkeypatch):
    monkeypatch.setenv("GCS_BUCKET_NAME", "assets")
    assert storage.public_url("c.jpg", "a/b") == "https://storage.googleapis.com/assets/a/b/c.jpg"
    assert storage.public_url("c.jpg", None, "other") == "https://storage.googleapis.com/other/c.jpg"


def test_generate_upload_file_name():
    name = storage.generate_upload_file_name("/api/upload/folders/3/children/17/x", "Hello World_ab12", ".JPG")
    assert name == "3/17/hello-world-ab12.jpg"


def test_generate_upload_file_name_rejects_short_path():
    with pytest.raises(ValueError):
        storage.generate_upload_file_name("/uploads/3", "hash", ".jpg")


def test_signed_url_failure_returns_empty(monkeypatch, caplog):
    def broken_client():
        raise RuntimeError("no credentials")

    monkeypatch.setattr(storage, "_client", broken_client)

    assert storage.signed_url("c.jpg", "a", "assets") == ""
    assert "signed_url_failed" in caplog.text


def test_signed_url_uses_v4_get(monkeypatch):
    seen = {}

    class Blob:
        def generate_signed_url(self, **kwargs):
            seen.update(kwargs)
            return "https://signed"

    class Bucket:
        def blob(self, path):
            seen["path"] = path
            return Blob()

    class Client:
        def bucket(self, name):
            seen["bucket"] = name
            return Bucket()

    monkeypatch.setattr(storage, "_client", lambda: Client())

    assert storage.signed_url("c.jpg", "a/b", "assets") == "https://signed"
    assert seen["bucket"] == "assets"
    assert seen["path"] == "a/b/c.jpg"
    assert seen["version"] == "v4"
    assert seen["method"] == "GET"
