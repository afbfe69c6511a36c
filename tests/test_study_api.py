"""
Integration tests for the study endpoints
"""
import tempfile

import pytest

from sample_texts import STUDY_TEXT


class TestAuthGate:
    def test_missing_token_is_unauthorized(self, client):
        response = client.post("/api/study/process", json={"text": STUDY_TEXT})

        assert response.status_code == 401
        assert response.json()["error"] == "Access token required"

    def test_invalid_token_is_forbidden(self, client):
        response = client.get("/api/study/history", headers={"Authorization": "Bearer invalid.token.here"})

        assert response.status_code == 403

    def test_non_bearer_scheme_is_unauthorized(self, client):
        response = client.get("/api/study/stats", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401


class TestProcess:
    def test_process_all_features(self, client, auth_headers):
        response = client.post("/api/study/process", json={"text": STUDY_TEXT}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["sessionId"]
        assert data["summary"]
        assert 2 <= len(data["quiz"]) <= 3
        assert 4 <= len(data["flashcards"]) <= 6
        assert len(data["keyPoints"]) <= 5

    def test_only_requested_features_returned(self, client, auth_headers):
        response = client.post("/api/study/process", json={"text": STUDY_TEXT, "features": ["quiz"]},
                               headers=auth_headers)

        data = response.json()
        assert "quiz" in data
        assert not {"summary", "flashcards", "keyPoints"} & set(data)

    def test_short_text_rejected(self, client, auth_headers):
        response = client.post("/api/study/process", json={"text": "   too short   "}, headers=auth_headers)

        assert response.status_code == 400
        assert "30 characters" in response.json()["error"]

    @pytest.mark.parametrize("features", [[], ["bogus"]])
    def test_no_usable_features_rejected(self, client, auth_headers, features):
        response = client.post("/api/study/process", json={"text": STUDY_TEXT, "features": features},
                               headers=auth_headers)

        assert response.status_code == 400


class TestProcessFile:
    def test_plain_text_upload(self, client, auth_headers):
        response = client.post(
            "/api/study/process-file",
            files={"file": ("notes.txt", STUDY_TEXT.encode(), "text/plain")},
            data={"features": ["summary", "keyPoints"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["inputType"] == "document"
        assert data["fileName"] == "notes.txt"
        assert set(data) >= {"summary", "keyPoints"}
        assert "quiz" not in data

    def test_unknown_type_uses_placeholder(self, client, auth_headers):
        response = client.post(
            "/api/study/process-file",
            files={"file": ("blob.bin", b"\x00\x01\x02", "application/octet-stream")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["inputType"] == "file"

    def test_audio_without_transcription_service(self, client, auth_headers):
        response = client.post(
            "/api/study/process-file",
            files={"file": ("lecture.mp3", b"ID3fake-audio", "audio/mpeg")},
            data={"features": ["flashcards"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["inputType"] == "audio"

    def test_broken_pdf_rejected(self, client, auth_headers):
        response = client.post(
            "/api/study/process-file",
            files={"file": ("notes.pdf", b"not really a pdf", "application/pdf")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "PDF" in response.json()["error"]

    def test_empty_file_rejected(self, client, auth_headers):
        response = client.post(
            "/api/study/process-file",
            files={"file": ("empty.txt", b"", "text/plain")},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_temp_files_removed(self, client, auth_headers, tmp_path, monkeypatch):
        """Uploads are deleted after extraction and on extraction errors"""
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(scratch))

        client.post("/api/study/process-file", files={"file": ("a.txt", STUDY_TEXT.encode(), "text/plain")},
                    headers=auth_headers)
        client.post("/api/study/process-file", files={"file": ("b.pdf", b"junk", "application/pdf")},
                    headers=auth_headers)

        assert list(scratch.iterdir()) == []


class TestHistory:
    def test_history_stats_and_session(self, client, auth_headers, register_user):
        first = client.post("/api/study/process", json={"text": STUDY_TEXT, "features": ["summary"]},
                            headers=auth_headers).json()
        second = client.post("/api/study/process", json={"text": STUDY_TEXT, "features": ["quiz", "flashcards"]},
                             headers=auth_headers).json()

        history = client.get("/api/study/history", headers=auth_headers).json()
        assert history["total"] == 2
        assert [s["id"] for s in history["sessions"]] == [second["sessionId"], first["sessionId"]]
        assert set(history["sessions"][0]["results"]) == {"quiz", "flashcards"}

        limited = client.get("/api/study/history?limit=1", headers=auth_headers).json()
        assert limited["total"] == 1

        session = client.get(f"/api/study/session/{first['sessionId']}", headers=auth_headers).json()
        assert session["session"]["features"] == ["summary"]

        stats = client.get("/api/study/stats", headers=auth_headers).json()["stats"]
        assert stats["totalSessions"] == 2
        assert stats["inputTypes"] == {"text": 2}

        other = register_user(email="other@example.com")["token"]
        other_headers = {"Authorization": f"Bearer {other}"}
        assert client.get(f"/api/study/session/{first['sessionId']}", headers=other_headers).status_code == 404
        assert client.get("/api/study/history", headers=other_headers).json()["total"] == 0

    @pytest.mark.parametrize("limit, expected", [("200", 2), ("0", 0), ("-3", 0)])
    def test_history_limit_is_clamped(self, client, auth_headers, limit, expected):
        for _ in range(2):
            client.post("/api/study/process", json={"text": STUDY_TEXT, "features": ["quiz"]}, headers=auth_headers)

        response = client.get(f"/api/study/history?limit={limit}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["total"] == expected

    def test_missing_session(self, client, auth_headers):
        response = client.get("/api/study/session/does-not-exist", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Study session not found"
