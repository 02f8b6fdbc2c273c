"""
Test Suite for the HTTP Service and CLI
=======================================
Route tests through the Flask test client and command tests through
click's CliRunner.
"""

from __future__ import annotations

import io
import json

import pytest
from click.testing import CliRunner

from quizbowl.cli import cli
from quizbowl.engine import ImportConfig, ImportEngine
from quizbowl.server import create_app
from quizbowl.storage import QuestionStorage

QUESTION = {
    "text": "What is the chemical symbol for gold?",
    "answer": "Au",
    "difficulty": "district",
    "subject": "science",
    "year": "2022",
}


@pytest.fixture
def storage():
    return QuestionStorage(seed=True)


@pytest.fixture
def client(storage):
    app = create_app({"TESTING": True}, storage=storage)
    return app.test_client()


@pytest.fixture
def empty_client():
    app = create_app({"TESTING": True, "SEED_QUESTIONS": False})
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════════
# QUESTION ROUTES
# ═══════════════════════════════════════════════════════════════════════════════


class TestQuestionRoutes:
    """Test question CRUD and filtering."""

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"
        assert resp.get_json()["questions"] == 7

    def test_upload_cap_applied(self, monkeypatch):
        monkeypatch.delenv("QUIZBOWL_MAX_UPLOAD_MB", raising=False)
        app = create_app({"TESTING": True, "SEED_QUESTIONS": False})
        assert app.config["MAX_CONTENT_LENGTH"] == 10 * 1024 * 1024

    def test_empty_bank(self, empty_client):
        assert empty_client.get("/api/questions").get_json() == []

    def test_list_questions(self, client):
        data = client.get("/api/questions").get_json()
        assert len(data) == 7
        assert data[0]["id"] == 1
        assert set(data[0]) == {"id", "text", "answer", "difficulty", "subject", "year"}

    def test_get_question(self, client):
        resp = client.get("/api/questions/3")
        assert resp.status_code == 200
        assert resp.get_json()["answer"] == "Gravity"

    def test_get_missing_question(self, client):
        assert client.get("/api/questions/99").status_code == 404

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/nowhere")
        assert resp.status_code == 404
        assert resp.is_json
        assert resp.get_json()["message"]

    def test_get_invalid_id(self, client):
        resp = client.get("/api/questions/abc")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid question ID"

    def test_create_question(self, client):
        resp = client.post("/api/questions", json=QUESTION)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["id"] == 8
        assert data["answer"] == "Au"
        assert client.get("/api/questions/8").get_json() == data

    def test_create_invalid_question(self, client):
        resp = client.post("/api/questions", json={**QUESTION, "subject": "history"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["message"] == "Invalid question data"
        assert body["errors"]

    def test_delete_question(self, client):
        assert client.delete("/api/questions/1").status_code == 200
        assert client.get("/api/questions/1").status_code == 404
        assert client.delete("/api/questions/1").status_code == 404

    def test_filter_by_subject(self, client):
        resp = client.get(
            "/api/questions/filter?subjects=science&allSubjects=false"
        )
        assert resp.status_code == 200
        answers = {q["answer"] for q in resp.get_json()}
        assert answers == {"Gravity", "Sir Isaac Newton"}

    def test_filter_repeated_params(self, client):
        resp = client.get(
            "/api/questions/filter"
            "?difficulties=state&difficulties=regional&allDifficulties=false"
        )
        assert len(resp.get_json()) == 3

    def test_filter_bracket_params(self, client):
        resp = client.get("/api/questions/filter?years[]=2023&allYears=false")
        answers = [q["answer"] for q in resp.get_json()]
        assert answers == ["Srinivasa Ramanujan", "Mona Lisa"]

    def test_filter_all_flag_default(self, client):
        resp = client.get("/api/questions/filter?subjects=science")
        assert len(resp.get_json()) == 7

    def test_filter_invalid_value(self, client):
        resp = client.get("/api/questions/filter?subjects=history&allSubjects=false")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid filter parameters"


# ═══════════════════════════════════════════════════════════════════════════════
# IMPORT ROUTES
# ═══════════════════════════════════════════════════════════════════════════════


class TestImportRoutes:
    """Test document parsing and question import."""

    def test_parse_upload(self, client):
        resp = client.post(
            "/api/questions/parse",
            data={
                "file": (io.BytesIO(b"1. Q one\nAnswer: a\n2. Q two"), "packet.txt"),
                "defaultSubject": "arts",
                "defaultYear": "2011",
            },
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["fileType"] == "txt"
        assert data["filename"] == "packet.txt"
        assert [q["text"] for q in data["questions"]] == ["Q one", "Q two"]
        assert data["questions"][1]["answer"] == "[No answer provided]"
        assert all(q["subject"] == "arts" for q in data["questions"])
        assert all(q["year"] == "2011" for q in data["questions"])

        # Parsing does not store anything
        assert len(client.get("/api/questions").get_json()) == 7

    def test_parse_without_file(self, client):
        resp = client.post(
            "/api/questions/parse", data={}, content_type="multipart/form-data"
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "No file uploaded"

    def test_parse_invalid_default(self, client):
        resp = client.post(
            "/api/questions/parse",
            data={
                "file": (io.BytesIO(b"1. Q"), "packet.txt"),
                "defaultDifficulty": "national",
            },
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_parse_corrupt_pdf(self, client):
        resp = client.post(
            "/api/questions/parse",
            data={"file": (io.BytesIO(b"%PDF-1.7 garbage"), "bad.pdf")},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 422

    def test_parse_too_large(self, storage):
        engine = ImportEngine(ImportConfig(max_upload_bytes=16))
        app = create_app(
            {"TESTING": True, "MAX_CONTENT_LENGTH": None},
            storage=storage,
            engine=engine,
        )
        resp = app.test_client().post(
            "/api/questions/parse",
            data={"file": (io.BytesIO(b"x" * 64), "big.txt")},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 413

    def test_import_parsed_document(self, empty_client):
        payload = {
            "questions": [QUESTION, {**QUESTION, "text": "Second?", "answer": "Ag"}],
            "fileType": "pdf",
            "filename": "packet.pdf",
        }
        resp = empty_client.post("/api/questions/import", json=payload)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["count"] == 2
        assert [q["id"] for q in data["questions"]] == [1, 2]

    def test_import_invalid_document(self, empty_client):
        resp = empty_client.post(
            "/api/questions/import",
            json={"questions": [], "fileType": "rtf", "filename": "x.rtf"},
        )
        assert resp.status_code == 400

    def test_import_text(self, empty_client):
        resp = empty_client.post("/api/questions/import-text", json={
            "text": "1. What is 2+2?\nAnswer: 4\n2. Sky?\nSubject: science\nAnswer: Blue",
            "defaultDifficulty": "state",
        })
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["count"] == 2
        assert data["questions"][0]["difficulty"] == "state"
        assert data["questions"][0]["subject"] == "math"
        assert data["questions"][1]["subject"] == "science"
        assert len(empty_client.get("/api/questions").get_json()) == 2

    def test_import_text_with_escaped_surrogate(self, empty_client):
        resp = empty_client.post(
            "/api/questions/import-text",
            data='{"text": "1. a\\ud800\\nAnswer: b"}',
            content_type="application/json",
        )
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["count"] == 1
        assert data["questions"][0]["text"] == "a?"
        assert data["questions"][0]["answer"] == "b"

    @pytest.mark.parametrize("body", [{}, {"text": "   "}, {"text": 42}])
    def test_import_text_requires_text(self, empty_client, body):
        resp = empty_client.post("/api/questions/import-text", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Text content is required"


# ═══════════════════════════════════════════════════════════════════════════════
# ANSWER / SCORE / FLASHCARD ROUTES
# ═══════════════════════════════════════════════════════════════════════════════


class TestAnswerRoutes:
    """Test answer checking and score tracking."""

    def test_check_correct(self, client):
        resp = client.post("/api/answers/check", json={
            "candidate": "newton",
            "canonical": "Sir Isaac Newton",
        })
        assert resp.get_json() == {"correct": True, "rule": "containment"}

    def test_check_incorrect(self, client):
        resp = client.post("/api/answers/check", json={
            "candidate": "gravity",
            "canonical": "friction",
        })
        assert resp.get_json() == {"correct": False, "rule": None}

    def test_check_missing_fields(self, client):
        resp = client.post("/api/answers/check", json={"candidate": "x"})
        assert resp.status_code == 400

    def test_score(self, client):
        assert client.get("/api/score").get_json() == {"score": 0}
        resp = client.post("/api/score", json={"score": 30})
        assert resp.get_json() == {"score": 30}
        assert client.get("/api/score").get_json() == {"score": 30}

    @pytest.mark.parametrize("score", ["10", None, True])
    def test_score_must_be_number(self, client, score):
        resp = client.post("/api/score", json={"score": score})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Score must be a number"

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity"])
    def test_score_must_be_finite(self, client, raw):
        resp = client.post(
            "/api/score",
            data=f'{{"score": {raw}}}',
            content_type="application/json",
        )
        assert resp.status_code == 400
        assert client.get("/api/score").get_json() == {"score": 0}


class TestFlashcardRoutes:
    """Test flashcard CRUD."""

    def _create(self, client, **overrides):
        payload = {"questionId": 2, "dateAdded": "2024-03-01"}
        payload.update(overrides)
        return client.post("/api/flashcards", json=payload)

    def test_create_and_get(self, client):
        resp = self._create(client)
        assert resp.status_code == 201
        card = resp.get_json()
        assert card == {
            "id": 1,
            "questionId": 2,
            "dateAdded": "2024-03-01",
            "lastReviewed": None,
            "timesReviewed": 0,
            "notes": None,
        }
        assert client.get("/api/flashcards/1").get_json() == card
        assert client.get("/api/flashcards").get_json() == [card]

    def test_create_invalid(self, client):
        resp = client.post("/api/flashcards", json={"questionId": 2})
        assert resp.status_code == 400

    def test_update(self, client):
        self._create(client, notes="review")
        resp = client.patch("/api/flashcards/1", json={
            "timesReviewed": 3,
            "lastReviewed": "2024-03-05",
        })
        assert resp.status_code == 200
        card = resp.get_json()
        assert card["timesReviewed"] == 3
        assert card["lastReviewed"] == "2024-03-05"
        assert card["notes"] == "review"

    def test_update_missing(self, client):
        resp = client.patch("/api/flashcards/5", json={"notes": "x"})
        assert resp.status_code == 404

    def test_delete(self, client):
        self._create(client)
        assert client.delete("/api/flashcards/1").status_code == 200
        assert client.get("/api/flashcards/1").status_code == 404
        assert client.delete("/api/flashcards/1").status_code == 404

    def test_invalid_id(self, client):
        assert client.get("/api/flashcards/one").status_code == 400


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCli:
    """Test the command-line interface."""

    def test_judge_correct(self):
        result = CliRunner().invoke(cli, ["judge", "mona lisa", "The Mona Lisa"])
        assert result.exit_code == 0
        assert "Correct" in result.output
        assert "containment" in result.output

    def test_judge_incorrect(self):
        result = CliRunner().invoke(cli, ["judge", "gravity", "friction"])
        assert result.exit_code == 1
        assert "Incorrect" in result.output

    def test_parse_json_output(self, tmp_path):
        path = tmp_path / "packet.txt"
        path.write_text(
            "1. What is 2+2?\nAnswer: 4\nLevel: regional\n", encoding="utf-8"
        )

        result = CliRunner().invoke(cli, [
            "parse", str(path), "--json-output", "--subject", "science",
            "--year", "2012",
        ])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["fileType"] == "txt"
        assert data["questions"] == [{
            "text": "What is 2+2?",
            "answer": "4",
            "difficulty": "regional",
            "subject": "science",
            "year": "2012",
        }]

    def test_parse_table_output(self, tmp_path):
        path = tmp_path / "packet.txt"
        path.write_text("Q: Who?\nA: Me\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["parse", str(path)])

        assert result.exit_code == 0
        assert "Extracted Questions" in result.output
        assert "Total:" in result.output

    def test_parse_invalid_year(self, tmp_path):
        path = tmp_path / "packet.txt"
        path.write_text("Q: Who?\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["parse", str(path), "--year", "99"])

        assert result.exit_code == 1
        assert "Invalid defaults" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
