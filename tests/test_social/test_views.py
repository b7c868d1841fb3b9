"""Tests for the social API views."""

import uuid
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from src.library.models import Song
from src.social.models import Group, Profile, PublicRecording


def make_user(username):
    user = User.objects.create_user(username=username, email=f"{username}@example.com", password="test")
    Profile.for_user(user)
    return user


class SocialApiTestCase(TestCase):

    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.client = APIClient()
        self.client.force_authenticate(user=self.alice)


class TestProfileViews(SocialApiTestCase):

    def test_get_profile(self):
        data = self.client.get("/api/profile/").json()
        assert data == {
            "id": self.alice.id,
            "username": "alice",
            "email": "alice@example.com",
            "bio": "",
            "photo_url": "",
        }

    def test_update_profile(self):
        response = self.client.patch(
            "/api/profile/", {"bio": "Left-handed strummer", "email": "x@example.com"}, format="json",
        )
        assert response.status_code == 200
        profile = Profile.for_user(self.alice)
        assert profile.bio == "Left-handed strummer"
        assert profile.email == "alice@example.com"

    def test_taken_username_returns_400(self):
        response = self.client.patch("/api/profile/", {"username": "bob"}, format="json")
        assert response.status_code == 400

    def test_taken_username_ignores_case(self):
        response = self.client.patch("/api/profile/", {"username": "BOB"}, format="json")
        assert response.status_code == 400

    def test_username_of_account_without_profile_is_taken(self):
        User.objects.create_user(username="carol", password="test")
        response = self.client.patch("/api/profile/", {"username": "Carol"}, format="json")
        assert response.status_code == 400

    def test_recasing_own_username(self):
        response = self.client.patch("/api/profile/", {"username": "Alice"}, format="json")
        assert response.status_code == 200
        assert response.json()["username"] == "Alice"

    def test_user_search(self):
        response = self.client.get("/api/users/search/", {"q": "b"})
        assert [p["username"] for p in response.json()] == ["bob"]


class TestFriendViews(SocialApiTestCase):

    def test_follow_and_list(self):
        response = self.client.post("/api/friends/", {"user_id": self.bob.id}, format="json")
        assert response.status_code == 201
        assert response.json()["username"] == "bob"

        assert [p["username"] for p in self.client.get("/api/friends/").json()] == ["bob"]

    def test_follow_self_returns_400(self):
        response = self.client.post("/api/friends/", {"user_id": self.alice.id}, format="json")
        assert response.status_code == 400

    def test_follow_unknown_user_returns_404(self):
        response = self.client.post("/api/friends/", {"user_id": 99999}, format="json")
        assert response.status_code == 404

    def test_follow_without_user_id_returns_400(self):
        assert self.client.post("/api/friends/", {}, format="json").status_code == 400

    def test_unfollow(self):
        Profile.for_user(self.alice).add_friend(self.bob)
        assert self.client.delete(f"/api/friends/{self.bob.id}/").status_code == 204
        assert not Profile.for_user(self.alice).friends.exists()


class TestFeedViews(SocialApiTestCase):

    def setUp(self):
        super().setUp()
        song = Song.objects.add_song(self.alice, "Wonderwall", "Oasis", "Intro")
        with patch("src.loops.tasks.analyse_loop.delay"):
            self.recording = song.parts.get().add_recording(file_path="recordings/w.wav", duration_seconds=3)

    @patch("src.social.views.notify_user")
    def test_share(self, mock_notify):
        response = self.client.post(f"/api/recordings/{self.recording.id}/share/")

        assert response.status_code == 201
        assert response.json()["song_title"] == "Wonderwall"
        mock_notify.assert_called_once_with(self.alice.id, "Shared Wonderwall – Intro")

    def test_share_without_file_returns_400(self):
        recording = self.recording.part.add_recording(note="no media")
        response = self.client.post(f"/api/recordings/{recording.id}/share/")
        assert response.status_code == 400

    def test_share_other_users_recording_returns_404(self):
        client = APIClient()
        client.force_authenticate(user=self.bob)
        assert client.post(f"/api/recordings/{self.recording.id}/share/").status_code == 404

    def test_feed_and_like(self):
        shared = PublicRecording.share(self.recording)
        client = APIClient()
        client.force_authenticate(user=self.bob)
        Profile.for_user(self.bob).add_friend(self.alice)

        feed = client.get("/api/feed/").json()
        assert [r["id"] for r in feed] == [str(shared.id)]

        response = client.post(f"/api/public-recordings/{shared.id}/like/")
        assert response.json()["likes"] == 1

        recordings = client.get(f"/api/users/{self.alice.id}/recordings/").json()
        assert recordings[0]["likes"] == 1

    def test_like_unknown_returns_404(self):
        assert self.client.post(f"/api/public-recordings/{uuid.uuid4()}/like/").status_code == 404


class TestGroupViews(SocialApiTestCase):

    def setUp(self):
        super().setUp()
        self.group = Group.objects.create_group(self.alice, "Garage band", members=[self.bob])
        self.url = f"/api/groups/{self.group.id}/"

    def test_create_group(self):
        response = self.client.post(
            "/api/groups/", {"name": "Duo", "member_ids": [self.bob.id]}, format="json",
        )
        assert response.status_code == 201
        assert response.json()["member_ids"] == sorted([self.alice.id, self.bob.id])

    def test_create_group_with_cover(self):
        cover = SimpleUploadedFile("cover.png", b"\x89PNG fake", content_type="image/png")
        response = self.client.post(
            "/api/groups/", {"name": "Trio", "cover_photo": cover}, format="multipart",
        )
        assert response.status_code == 201
        assert "cover-" in response.json()["cover_photo_url"]

    def test_create_group_with_unknown_member(self):
        response = self.client.post("/api/groups/", {"name": "Duo", "member_ids": [99999]}, format="json")
        assert response.status_code == 400

    def test_list_my_groups(self):
        assert [g["name"] for g in self.client.get("/api/groups/").json()] == ["Garage band"]

    def test_non_member_is_forbidden(self):
        carol = make_user("carol")
        client = APIClient()
        client.force_authenticate(user=carol)
        assert client.get(self.url).status_code == 403
        assert client.get(f"{self.url}songs/").status_code == 403

    def test_unknown_group(self):
        assert self.client.get(f"/api/groups/{uuid.uuid4()}/").status_code == 404

    def test_songs_progress_and_jam_list(self):
        response = self.client.post(f"{self.url}songs/", {"title": "Wonderwall", "artist": "Oasis"}, format="json")
        assert response.status_code == 201
        song_id = response.json()["id"]

        bob_client = APIClient()
        bob_client.force_authenticate(user=self.bob)
        for client in (self.client, bob_client):
            response = client.post(
                f"{self.url}progress/", {"song_id": song_id, "progress_text": "ready"}, format="json",
            )
            assert response.status_code == 201

        progress = self.client.get(f"{self.url}progress/").json()
        assert len(progress) == 2

        members = self.client.get(f"{self.url}members/").json()
        assert all(m["songs_can_play"] == [song_id] for m in members)

        jam = self.client.get(f"{self.url}jam-list/").json()
        assert [(s["title"], s["member_count"]) for s in jam] == [("Wonderwall", 2)]

    def test_progress_on_unknown_song_returns_404(self):
        response = self.client.post(
            f"{self.url}progress/", {"song_id": str(uuid.uuid4()), "progress_text": "ready"}, format="json",
        )
        assert response.status_code == 404

    def test_reactions(self):
        song = self.group.add_song(self.alice, "Wonderwall", "Oasis")
        progress = self.group.post_progress(self.bob, song, "ready")
        url = f"{self.url}progress/{progress.id}/reactions/"

        response = self.client.post(url, {"emoji": "🔥"}, format="json")
        assert response.status_code == 201
        assert response.json() == {"reaction_counts": {"🔥": 1}}

        assert self.client.post(url, {"emoji": "🔥"}, format="json").status_code == 200
        assert self.client.get(url, {"emoji": "🔥"}).json()["reacted"] is True

        response = self.client.delete(f"{url}?emoji=%F0%9F%94%A5")
        assert response.json() == {"reaction_counts": {}}

    def test_unsupported_reaction_returns_400(self):
        song = self.group.add_song(self.alice, "Wonderwall", "Oasis")
        progress = self.group.post_progress(self.bob, song, "ready")
        response = self.client.post(
            f"{self.url}progress/{progress.id}/reactions/", {"emoji": "🐍"}, format="json",
        )
        assert response.status_code == 400
