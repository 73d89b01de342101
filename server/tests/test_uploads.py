"""
Tests for product image uploads.
"""

import pytest

from shopadmin.errors import NotFoundError, ValidationError
from shopadmin.uploads import UploadStorage


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def storage(tmp_path):
    return UploadStorage(str(tmp_path / "images"), max_bytes=1024, allowed_extensions=["png", ".JPG"])


class TestUploadStorage:
    def test_save_uses_random_name(self, storage):
        saved = storage.save("Photo.PNG", PNG)

        assert saved["originalName"] == "Photo.PNG"
        assert saved["filename"].endswith(".png")
        assert saved["filename"] != "Photo.PNG"
        assert saved["size"] == len(PNG)
        assert saved["url"] == f"/uploads/{saved['filename']}"
        assert (storage.directory / saved["filename"]).read_bytes() == PNG

    @pytest.mark.parametrize("filename,content,code", [
        ("", PNG, "MissingFile"),
        ("notes.txt", b"hello", "UnsupportedFile"),
        ("noextension", PNG, "UnsupportedFile"),
        ("empty.png", b"", "EmptyFile"),
        ("big.jpg", b"x" * 1025, "FileTooLarge"),
    ])
    def test_rejections(self, storage, filename, content, code):
        with pytest.raises(ValidationError) as exc_info:
            storage.save(filename, content)

        assert exc_info.value.code == code
        assert list(storage.directory.iterdir()) == []

    def test_save_many_is_all_or_nothing(self, storage):
        with pytest.raises(ValidationError):
            storage.save_many([("a.png", PNG), ("b.gif", PNG)])

        assert list(storage.directory.iterdir()) == []

    def test_delete(self, storage):
        saved = storage.save("a.png", PNG)

        storage.delete(saved["filename"])

        assert not (storage.directory / saved["filename"]).exists()
        with pytest.raises(NotFoundError):
            storage.delete(saved["filename"])

    @pytest.mark.parametrize("filename", ["../secret.png", "nested/a.png", ".hidden"])
    def test_delete_rejects_paths(self, storage, filename):
        with pytest.raises(ValidationError) as exc_info:
            storage.delete(filename)

        assert exc_info.value.code == "InvalidFilename"

    def test_info(self, storage):
        storage.save("a.png", PNG)

        info = storage.info()

        assert info["fileCount"] == 1
        assert info["totalBytes"] == len(PNG)
        assert info["allowedExtensions"] == ["png", "jpg"]


class TestUploadEndpoints:
    def test_upload_and_serve(self, client):
        response = client.post("/api/upload", files={"image": ("bag.png", PNG, "image/png")})

        assert response.status_code == 201
        url = response.json()["url"]
        served = client.get(url)
        assert served.status_code == 200
        assert served.content == PNG

    def test_upload_rejects_unsupported_type(self, client):
        response = client.post("/api/upload", files={"image": ("run.sh", b"echo", "text/plain")})

        assert response.status_code == 400
        assert "Unsupported image format" in response.json()["error"]

    def test_upload_requires_file(self, client):
        response = client.post("/api/upload", data={})

        assert response.status_code == 400

    def test_upload_multiple(self, client):
        response = client.post("/api/upload/multiple", files=[
            ("images", ("a.png", PNG, "image/png")),
            ("images", ("b.jpg", PNG, "image/jpeg")),
        ])

        assert response.status_code == 201
        assert response.json()["count"] == 2
        assert client.get("/api/upload/info").json()["fileCount"] == 2

    def test_delete_upload(self, client):
        saved = client.post("/api/upload", files={"image": ("bag.png", PNG, "image/png")}).json()

        assert client.delete(f"/api/upload/{saved['filename']}").status_code == 204
        assert client.delete(f"/api/upload/{saved['filename']}").status_code == 404
