"""
HTTP Service
============
Flask-based HTTP API in front of the question bank, the question
extractor and the answer matcher.

Endpoints:
    GET    /api/health                 → Health check
    GET    /api/questions              → All questions
    GET    /api/questions/filter       → Questions matching a filter
    GET    /api/questions/<id>         → One question
    POST   /api/questions              → Create a question
    DELETE /api/questions/<id>         → Delete a question
    POST   /api/questions/parse        → Extract questions from an upload
    POST   /api/questions/import       → Store reviewed parsed questions
    POST   /api/questions/import-text  → Extract and store pasted text
    POST   /api/answers/check          → Judge a candidate answer
    GET    /api/score                  → Current score
    POST   /api/score                  → Set score
    GET    /api/flashcards             → All flashcards
    POST   /api/flashcards             → Create a flashcard
    GET    /api/flashcards/<id>        → One flashcard
    PATCH  /api/flashcards/<id>        → Update a flashcard
    DELETE /api/flashcards/<id>        → Delete a flashcard
"""

from __future__ import annotations

import json
import logging
import math
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import HTTPException

from . import __version__
from .documents import DocumentError
from .engine import DocumentTooLargeError, ImportConfig, ImportEngine
from .matcher import match_answer
from .models import (
    AnswerCheck,
    FlashcardCreate,
    FlashcardUpdate,
    ParsedDocument,
    QuestionFilter,
    QuestionRecord,
)
from .storage import FlashcardNotFoundError, QuestionStorage

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")

DEFAULT_FIELDS = ("defaultDifficulty", "defaultSubject", "defaultYear")


def create_app(
    config: dict = None,
    storage: Optional[QuestionStorage] = None,
    engine: Optional[ImportEngine] = None,
) -> Flask:
    """Create and configure the Flask app."""
    app = Flask(__name__)
    if config:
        app.config.update(config)

    engine = engine or ImportEngine(ImportConfig.from_env())

    # An explicit MAX_CONTENT_LENGTH in config wins over the engine cap
    if not config or "MAX_CONTENT_LENGTH" not in config:
        app.config["MAX_CONTENT_LENGTH"] = engine.config.max_upload_bytes
    app.config.setdefault("SEED_QUESTIONS", True)

    if storage is None:
        storage = QuestionStorage(seed=app.config["SEED_QUESTIONS"])

    app.extensions["question_storage"] = storage
    app.extensions["import_engine"] = engine

    CORS(app)
    app.register_blueprint(api)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.exception(f"Unhandled error on {request.path}")
        return jsonify({"message": "Internal server error"}), 500

    logger.info(f"App created with {len(storage.get_questions())} questions")
    return app


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _storage() -> QuestionStorage:
    return current_app.extensions["question_storage"]


def _engine() -> ImportEngine:
    return current_app.extensions["import_engine"]


def _dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _invalid(message: str, error: ValidationError):
    return jsonify({
        "message": message,
        "errors": json.loads(error.json(include_url=False)),
    }), 400


def _json_body() -> dict:
    """JSON object body of the request, or {} for anything else."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _parse_id(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def _query_list(name: str) -> list[str]:
    """Repeated query parameter, accepting both ``name`` and ``name[]``."""
    return request.args.getlist(name) + request.args.getlist(f"{name}[]")


def _imported_response(questions: list):
    return jsonify({
        "count": len(questions),
        "questions": [_dump(q) for q in questions],
    }), 201


# ─── Health Check ─────────────────────────────────────────────────────────────


@api.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "quizbowl",
        "version": __version__,
        "questions": len(_storage().get_questions()),
    })


# ─── Questions ────────────────────────────────────────────────────────────────


@api.route("/questions", methods=["GET"])
def list_questions():
    return jsonify([_dump(q) for q in _storage().get_questions()])


@api.route("/questions/filter", methods=["GET"])
def filter_questions():
    """
    Filter questions by difficulty, subject and year.

    Query:
        difficulties, subjects, years: repeatable values.
        allDifficulties, allSubjects, allYears: anything but "false" is true.
    """
    try:
        question_filter = QuestionFilter.model_validate({
            "difficulties": _query_list("difficulties"),
            "subjects": _query_list("subjects"),
            "years": _query_list("years"),
            "allDifficulties": request.args.get("allDifficulties") != "false",
            "allSubjects": request.args.get("allSubjects") != "false",
            "allYears": request.args.get("allYears") != "false",
        })
    except ValidationError as e:
        return _invalid("Invalid filter parameters", e)

    questions = _storage().get_questions_by_filter(question_filter)
    return jsonify([_dump(q) for q in questions])


@api.route("/questions/<question_id>", methods=["GET"])
def get_question(question_id: str):
    qid = _parse_id(question_id)
    if qid is None:
        return jsonify({"message": "Invalid question ID"}), 400

    question = _storage().get_question(qid)
    if question is None:
        return jsonify({"message": "Question not found"}), 404
    return jsonify(_dump(question))


@api.route("/questions", methods=["POST"])
def create_question():
    try:
        record = QuestionRecord.model_validate(_json_body())
    except ValidationError as e:
        return _invalid("Invalid question data", e)

    question = _storage().create_question(record)
    return jsonify(_dump(question)), 201


@api.route("/questions/<question_id>", methods=["DELETE"])
def delete_question(question_id: str):
    qid = _parse_id(question_id)
    if qid is None:
        return jsonify({"message": "Invalid question ID"}), 400

    if not _storage().delete_question(qid):
        return jsonify({"message": "Question not found"}), 404
    return jsonify({"message": "Question deleted successfully"})


# ─── Document Import ─────────────────────────────────────────────────────────


@api.route("/questions/parse", methods=["POST"])
def parse_document():
    """
    Extract questions from an uploaded document without storing them.

    Accepts multipart/form-data with a ``file`` field and optional
    ``defaultDifficulty`` / ``defaultSubject`` / ``defaultYear`` fields.
    """
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"message": "No file uploaded"}), 400

    engine = _engine()
    try:
        defaults = engine.defaults(
            {key: request.form.get(key) for key in DEFAULT_FIELDS}
        )
    except ValidationError as e:
        return _invalid("Invalid default values", e)

    try:
        document = engine.parse_document(upload.read(), upload.filename, defaults)
    except DocumentTooLargeError as e:
        return jsonify({"message": str(e)}), 413
    except DocumentError as e:
        logger.warning(f"Failed to parse {upload.filename}: {e}")
        return jsonify({"message": "Failed to parse document"}), 422

    return jsonify(_dump(document))


@api.route("/questions/import", methods=["POST"])
def import_document():
    """Store questions previously returned by /questions/parse."""
    try:
        document = ParsedDocument.model_validate(_json_body())
    except ValidationError as e:
        return _invalid("Invalid document data", e)

    imported = _storage().import_questions(document.questions)
    return _imported_response(imported)


@api.route("/questions/import-text", methods=["POST"])
def import_text():
    """Extract questions from pasted text and store them."""
    data = _json_body()
    text = data.get("text")
    if not isinstance(text, str) or not text.strip():
        return jsonify({"message": "Text content is required"}), 400

    engine = _engine()
    try:
        defaults = engine.defaults({key: data.get(key) for key in DEFAULT_FIELDS})
    except ValidationError as e:
        return _invalid("Invalid default values", e)

    questions = engine.parse_text(text, defaults)
    imported = _storage().import_questions(questions)
    return _imported_response(imported)


# ─── Answer Check ────────────────────────────────────────────────────────────


@api.route("/answers/check", methods=["POST"])
def check_answer():
    try:
        check = AnswerCheck.model_validate(_json_body())
    except ValidationError as e:
        return _invalid("Invalid answer check", e)

    rule = match_answer(check.candidate, check.canonical)
    return jsonify({
        "correct": rule is not None,
        "rule": rule.value if rule else None,
    })


# ─── Score ────────────────────────────────────────────────────────────────────


@api.route("/score", methods=["GET"])
def get_score():
    return jsonify({"score": _storage().get_score()})


@api.route("/score", methods=["POST"])
def update_score():
    score = _json_body().get("score")
    if (
        isinstance(score, bool)
        or not isinstance(score, (int, float))
        or (isinstance(score, float) and not math.isfinite(score))
    ):
        return jsonify({"message": "Score must be a number"}), 400
    return jsonify({"score": _storage().update_score(score)})


# ─── Flashcards ───────────────────────────────────────────────────────────────


@api.route("/flashcards", methods=["GET"])
def list_flashcards():
    return jsonify([_dump(f) for f in _storage().get_flashcards()])


@api.route("/flashcards/<flashcard_id>", methods=["GET"])
def get_flashcard(flashcard_id: str):
    fid = _parse_id(flashcard_id)
    if fid is None:
        return jsonify({"message": "Invalid flashcard ID"}), 400

    flashcard = _storage().get_flashcard(fid)
    if flashcard is None:
        return jsonify({"message": "Flashcard not found"}), 404
    return jsonify(_dump(flashcard))


@api.route("/flashcards", methods=["POST"])
def create_flashcard():
    try:
        data = FlashcardCreate.model_validate(_json_body())
    except ValidationError as e:
        return _invalid("Invalid flashcard data", e)

    flashcard = _storage().create_flashcard(data)
    return jsonify(_dump(flashcard)), 201


@api.route("/flashcards/<flashcard_id>", methods=["PATCH"])
def update_flashcard(flashcard_id: str):
    fid = _parse_id(flashcard_id)
    if fid is None:
        return jsonify({"message": "Invalid flashcard ID"}), 400

    try:
        changes = FlashcardUpdate.model_validate(_json_body())
    except ValidationError as e:
        return _invalid("Invalid flashcard data", e)

    try:
        flashcard = _storage().update_flashcard(fid, changes)
    except FlashcardNotFoundError:
        return jsonify({"message": "Flashcard not found"}), 404
    return jsonify(_dump(flashcard))


@api.route("/flashcards/<flashcard_id>", methods=["DELETE"])
def delete_flashcard(flashcard_id: str):
    fid = _parse_id(flashcard_id)
    if fid is None:
        return jsonify({"message": "Invalid flashcard ID"}), 400

    if not _storage().delete_flashcard(fid):
        return jsonify({"message": "Flashcard not found"}), 404
    return jsonify({"message": "Flashcard deleted successfully"})


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the development server."""
    app = create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
