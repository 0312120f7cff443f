"""
Tests for the HTTP and WebSocket API.

Tests:
- Auth endpoints and the error envelope
- Random image and cached image endpoints
- Score submission, leaderboard and live broadcast
- Server-side puzzle endpoints
"""

from unittest.mock import MagicMock

import pytest

from ..engine_core.errors import UpstreamError


def login(client, email="ani@example.com", password="rahasia") -> str:
    response = client.post("/api/masuk", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["data"]["sesiId"]


def random_image(client) -> dict:
    response = client.get("/api/gambar-acak")
    assert response.status_code == 200
    return response.json()["data"]


class TestSystem:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["status"] == "Online"


class TestAuthEndpoints:
    """Tests for /api/masuk and /api/keluar."""

    def test_login(self, client):
        response = client.post("/api/masuk", json={"email": "ani@example.com", "password": "rahasia"})

        data = response.json()
        assert data["sukses"] is True
        assert data["pesan"] == "Login berhasil"
        assert data["data"]["nama"] == "Ani"
        assert data["data"]["sesiId"].startswith("sesi_")

    def test_login_missing_fields(self, client):
        response = client.post("/api/masuk", json={"email": "ani@example.com"})

        assert response.status_code == 400
        assert response.json()["pesan"] == "Email dan password harus diisi"

    def test_login_wrong_password(self, client):
        response = client.post("/api/masuk", json={"email": "ani@example.com", "password": "salah"})

        body = response.json()
        assert response.status_code == 401
        assert body["sukses"] is False
        assert body["kode"] == "INVALID_CREDENTIALS"
        assert body["pesan"] == "Email atau password salah"

    def test_logout_invalidates_session(self, client):
        session_id = login(client)

        response = client.post("/api/keluar", json={"sesiId": session_id})
        assert response.json() == {"sukses": True, "pesan": "Logout berhasil"}

        response = client.post("/api/simpan-skor", json={
            "sesiId": session_id, "tingkatKesulitan": "mudah", "skor": 90, "waktuDetik": 10,
        })
        assert response.status_code == 401
        assert response.json()["kode"] == "SESSION_INVALID"

    def test_logout_without_body(self, client):
        assert client.post("/api/keluar").status_code == 200


class TestImageEndpoints:
    """Tests for /api/gambar-acak and /api/gambar/{idCache}."""

    def test_random_image(self, client):
        data = random_image(client)

        assert data["idCache"].startswith("img_")
        assert data["urlGambar"] == f"/api/gambar/{data['idCache']}"
        assert data["fotografer"] == "Tester"

    def test_serves_cached_jpeg(self, client):
        data = random_image(client)

        response = client.get(data["urlGambar"])

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert response.content[:2] == b"\xff\xd8"

    def test_unknown_image(self, client):
        response = client.get("/api/gambar/img_missing")

        assert response.status_code == 404
        assert response.json()["kode"] == "IMAGE_NOT_FOUND"

    def test_upstream_failure(self, client, service):
        provider = MagicMock()
        provider.download.side_effect = UpstreamError("down")
        provider.fallback_photo.return_value = None
        service.provider = provider

        response = client.get("/api/gambar-acak")

        assert response.status_code == 500
        assert response.json()["pesan"] == "Gagal mengambil gambar"

    def test_unexpected_failure_keeps_json_envelope(self, service):
        """A bug in the pipeline still answers with the error envelope."""
        from fastapi.testclient import TestClient
        from ..api.app import create_app

        service.cropper = MagicMock()
        service.cropper.crop.side_effect = RuntimeError("boom")

        with TestClient(create_app(service=service), raise_server_exceptions=False) as lenient:
            response = lenient.get("/api/gambar-acak")

        body = response.json()
        assert response.status_code == 500
        assert body["sukses"] is False
        assert body["kode"] == "INTERNAL_ERROR"
        assert body["pesan"] == "Terjadi kesalahan server"


class TestScoreEndpoints:
    """Tests for /api/simpan-skor and /api/papan-peringkat."""

    def test_save_and_list(self, client):
        session_id = login(client)

        response = client.post("/api/simpan-skor", json={
            "sesiId": session_id, "tingkatKesulitan": "sedang", "skor": 160, "waktuDetik": 95,
        })
        assert response.json() == {"sukses": True, "pesan": "Skor berhasil disimpan"}

        rows = client.get("/api/papan-peringkat").json()["data"]
        assert rows[0]["rank"] == 1
        assert rows[0]["nama_pemain"] == "Ani"
        assert rows[0]["skor"] == 160
        assert rows[0]["waktu_detik"] == 95
        assert rows[0]["tingkat_kesulitan"] == "sedang"
        assert rows[0]["ukuran_grid"] == 4

    def test_invalid_score(self, client):
        session_id = login(client)

        response = client.post("/api/simpan-skor", json={
            "sesiId": session_id, "tingkatKesulitan": "mudah", "skor": 95, "waktuDetik": 10,
        })

        assert response.status_code == 400
        assert response.json()["kode"] == "INVALID_SCORE"

    def test_custom_score_without_grid(self, client):
        session_id = login(client)

        response = client.post("/api/simpan-skor", json={
            "sesiId": session_id, "tingkatKesulitan": "custom", "skor": 1000000000, "waktuDetik": 10,
        })

        assert response.status_code == 400
        assert response.json()["kode"] == "INVALID_GRID_SIZE"
        assert client.get("/api/papan-peringkat").json()["data"] == []

    def test_malformed_body(self, client):
        response = client.post("/api/simpan-skor", json={"tingkatKesulitan": "mudah", "skor": "banyak"})

        assert response.status_code == 400
        assert response.json()["kode"] == "VALIDATION_ERROR"

    def test_leaderboard_limit(self, client):
        session_id = login(client)
        for skor in (30, 60, 90):
            client.post("/api/simpan-skor", json={
                "sesiId": session_id, "tingkatKesulitan": "mudah", "skor": skor, "waktuDetik": 5,
            })

        rows = client.get("/api/papan-peringkat", params={"batas": 2}).json()["data"]

        assert [r["skor"] for r in rows] == [90, 60]

    def test_empty_leaderboard(self, client):
        body = client.get("/api/papan-peringkat").json()

        assert body["data"] == []
        assert body["pesan"] == "Peringkat berhasil diambil"


class TestPuzzleEndpoints:
    """Tests for /api/permainan."""

    @pytest.fixture
    def game(self, client):
        cache_id = random_image(client)["idCache"]
        response = client.post("/api/permainan", json={"idCache": cache_id, "tingkatKesulitan": "mudah"})
        assert response.status_code == 200
        return response.json()["data"]

    def test_start(self, game):
        assert game["ukuranGrid"] == 3
        assert game["fase"] == "empty"
        assert game["slot"] == [None] * 9
        assert len(game["tiles"]) == 9
        assert game["selesai"] is False

    def test_tile_offsets(self, game):
        tile = next(t for t in game["tiles"] if t["posisiTarget"] == 5)

        assert (tile["baris"], tile["kolom"]) == (1, 2)
        assert (tile["offsetX"], tile["offsetY"]) == (280.0, 140.0)

    def test_custom_out_of_range(self, client):
        cache_id = random_image(client)["idCache"]

        response = client.post("/api/permainan", json={
            "idCache": cache_id, "tingkatKesulitan": "custom", "ukuranGrid": 9,
        })

        assert response.status_code == 400
        assert response.json()["kode"] == "INVALID_GRID_SIZE"

    def test_wrong_placement_is_an_outcome(self, client, game):
        tile = next(t for t in game["tiles"] if t["posisiTarget"] != 0)

        response = client.post(f"/api/permainan/{game['idPermainan']}/tempatkan", json={
            "idTile": tile["id"], "indeksSlot": 0,
        })

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["hasil"] == "incorrect_placement"
        assert data["skor"] == 0

    def test_solve_and_state(self, client, game):
        game_id = game["idPermainan"]
        last = None
        for tile in game["tiles"]:
            last = client.post(f"/api/permainan/{game_id}/tempatkan", json={
                "idTile": tile["id"], "indeksSlot": tile["posisiTarget"],
            }).json()["data"]

        assert last["hasil"] == "accepted"
        assert last["selesai"] is True
        assert last["skor"] == 90
        assert last["skorTersimpan"] is False

        state = client.get(f"/api/permainan/{game_id}").json()["data"]
        assert state["fase"] == "complete"
        assert state["tiles"] == []
        assert state["timer"] == "stopped"

    def test_hint_and_reset(self, client, game):
        game_id = game["idPermainan"]

        hint = client.post(f"/api/permainan/{game_id}/petunjuk").json()["data"]
        assert 0 <= hint["indeksSlot"] < 9

        state = client.post(f"/api/permainan/{game_id}/reset").json()["data"]
        assert state["fase"] == "empty"
        assert state["skor"] == 0

    def test_pause_and_resume(self, client, game):
        game_id = game["idPermainan"]

        assert client.post(f"/api/permainan/{game_id}/jeda").json()["data"]["timer"] == "paused"
        assert client.post(f"/api/permainan/{game_id}/lanjut").json()["data"]["timer"] == "running"

    def test_leave(self, client, game):
        game_id = game["idPermainan"]

        assert client.delete(f"/api/permainan/{game_id}").status_code == 200

        response = client.get(f"/api/permainan/{game_id}")
        assert response.status_code == 404
        assert response.json()["kode"] == "GAME_NOT_FOUND"


class TestWebSocket:
    """Tests for /ws."""

    def test_online_count_on_connect(self, client):
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json() == {"type": "user-online-count", "onlineCount": 1}

    def test_ping(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})

            assert ws.receive_json() == {"type": "pong"}

    def test_invalid_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("{not json")

            assert ws.receive_json()["type"] == "error"

    def test_score_is_broadcast(self, client):
        session_id = login(client)

        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            client.post("/api/simpan-skor", json={
                "sesiId": session_id, "tingkatKesulitan": "sulit", "skor": 250, "waktuDetik": 300,
            })

            message = ws.receive_json()

        assert message["type"] == "leaderboard-update"
        assert message["nama_pemain"] == "Ani"
        assert message["skor"] == 250
        assert message["waktu_detik"] == 300
        assert message["tingkat_kesulitan"] == "sulit"
        assert message["message"] == "Ani selesai sulit dengan skor 250!"

    def test_completed_game_is_broadcast(self, client):
        session_id = login(client)
        cache_id = random_image(client)["idCache"]
        game = client.post("/api/permainan", json={
            "idCache": cache_id, "tingkatKesulitan": "custom", "ukuranGrid": 2, "sesiId": session_id,
        }).json()["data"]

        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            for tile in game["tiles"]:
                last = client.post(f"/api/permainan/{game['idPermainan']}/tempatkan", json={
                    "idTile": tile["id"], "indeksSlot": tile["posisiTarget"],
                }).json()["data"]

            message = ws.receive_json()

        assert last["skorTersimpan"] is True
        assert message["type"] == "leaderboard-update"
        assert message["skor"] == 40
        assert message["ukuran_grid"] == 2
