# tests/test_api/test_views.py
from django.contrib.auth.models import User
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from src.api import files


class TestHealthView(TestCase):

    def test_health_returns_ok(self):
        client = APIClient()
        response = client.get("/api/health/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"
        assert {"rhythm", "key", "spectral"} <= set(data["agents"])


class TestUserPath(TestCase):

    def test_paths_are_scoped_to_user(self):
        assert files.user_path(7, "avatars/me.png") == "users/7/avatars/me.png"
        assert files.user_path(7, "/avatars/./me.png") == "users/7/avatars/me.png"

    def test_escaping_the_folder_is_rejected(self):
        for bad in ("", "  ", "../8/secret.wav", "a/../../b"):
            with self.assertRaises(ValueError):
                files.user_path(7, bad)


class TestFileViews(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="test", password="test")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def upload(self, path, content=b"RIFF-data", name="take.wav"):
        return self.client.post(
            "/api/files/",
            {"path": path, "file": SimpleUploadedFile(name, content, content_type="audio/wav")},
            format="multipart",
        )

    def test_requires_authentication(self):
        assert APIClient().post("/api/files/", {}, format="multipart").status_code == 401

    def test_upload_and_download(self):
        response = self.upload("loops/riff.wav")

        assert response.status_code == 201
        data = response.json()
        assert data["path"] == "loops/riff.wav"
        assert data["storage_path"] == f"users/{self.user.id}/loops/riff.wav"

        response = self.client.get("/api/files/loops/riff.wav")
        assert response.status_code == 200
        assert response.content == b"RIFF-data"
        assert response["Content-Type"] == "audio/wav"

    def test_upload_replaces_existing_file(self):
        self.upload("loops/riff.wav", b"first")
        response = self.upload("loops/riff.wav", b"second")

        assert response.json()["storage_path"] == f"users/{self.user.id}/loops/riff.wav"
        assert self.client.get("/api/files/loops/riff.wav").content == b"second"

    def test_upload_without_file_returns_400(self):
        response = self.client.post("/api/files/", {"path": "a.wav"}, format="multipart")
        assert response.status_code == 400

    def test_upload_outside_folder_returns_400(self):
        assert self.upload("../../etc/passwd").status_code == 400

    def test_other_users_cannot_read(self):
        self.upload("private.wav")
        other = User.objects.create_user(username="other", password="test")
        client = APIClient()
        client.force_authenticate(user=other)
        assert client.get("/api/files/private.wav").status_code == 404

    def test_download_over_cap_returns_413(self):
        # The test cap is 1 MB
        default_storage.save(
            f"users/{self.user.id}/big.bin",
            SimpleUploadedFile("big.bin", b"\0" * (1024 * 1024 + 1)),
        )
        response = self.client.get("/api/files/big.bin")
        assert response.status_code == 413
        assert response.json()["error"] == "file_too_large"

    def test_delete(self):
        self.upload("loops/riff.wav")
        assert self.client.delete("/api/files/loops/riff.wav").status_code == 204
        assert self.client.delete("/api/files/loops/riff.wav").status_code == 404
        assert self.client.get("/api/files/loops/riff.wav").status_code == 404
