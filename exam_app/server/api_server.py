"""FastAPI server exposing the exam endpoints to browser clients."""

from __future__ import annotations

from datetime import timezone
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Response
from pydantic import BaseModel
import uvicorn

from exam_app.constants.about import APP_NAME, APP_VERSION
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.errors import (
    ConfirmationRequiredError,
    ExamError,
    FetchFailure,
    NoQuestionsError,
    PersistFailure,
    StaleSessionError,
    TestNotFoundError,
    TestUnavailableError,
)
from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import AttemptResult, AttemptView, TimerTick
from exam_app.core.services.document_store import result_to_document
from exam_app.core.services.result_history import grade_band


class StartAttemptPayload(BaseModel):
    """Payload schema for starting an attempt."""

    test_id: str
    student_id: str


class SelectionPayload(BaseModel):
    """Payload schema for selecting an option (index into the shuffled options)."""

    question_id: str
    selected_option_index: int


class SubmitPayload(BaseModel):
    """Payload schema for a manual submission."""

    confirmed: bool = False


def _iso(value) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _serialize_result(result: AttemptResult) -> dict[str, object]:
    document = result_to_document(result)
    document["submittedAt"] = _iso(result.submitted_at)
    document["grade"] = grade_band(result.percentage).value
    return document


def _serialize_tick(tick: TimerTick) -> dict[str, object]:
    return {
        "state": tick.state.value,
        "expired": tick.expired,
        "remaining_seconds": tick.remaining_seconds,
        "minutes": tick.minutes,
        "seconds": tick.seconds,
        "low_time_warning": tick.low_time_warning,
    }


def _serialize_view(view: AttemptView) -> dict[str, object]:
    return {
        "attempt_id": view.attempt_id,
        "test_id": view.test_id,
        "title": view.title,
        "state": view.state.value,
        "answered_count": view.answered_count,
        "question_count": view.question_count,
        "remaining_seconds": view.remaining_seconds,
        "low_time_warning": view.low_time_warning,
        "questions": [
            {
                "number": question.number,
                "question_id": question.question_id,
                "question_html": question.question_html,
                "options": question.options,
                "selected_option_index": question.selected_option_index,
            }
            for question in view.questions
        ],
        "result": _serialize_result(view.result) if view.result is not None else None,
    }


def _raise_http_error(exc: Exception) -> None:
    if isinstance(exc, ConfirmationRequiredError):
        raise HTTPException(
            status_code=409,
            detail={"code": "confirmation_required", "answered": exc.answered, "total": exc.total},
        ) from exc
    if isinstance(exc, (TestNotFoundError, StaleSessionError)):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, TestUnavailableError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, (NoQuestionsError, ValueError)):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if isinstance(exc, (FetchFailure, PersistFailure)):
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    raise exc


def _get_exam_manager_dependency(exam_manager: ExamManager):
    def dependency() -> ExamManager:
        return exam_manager

    return dependency


def create_api_app(exam_manager: ExamManager) -> FastAPI:
    """Create a FastAPI application wired to the provided exam manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    exam_manager_dep = _get_exam_manager_dependency(exam_manager)

    @app.get("/health")
    def health_check() -> dict[str, object]:
        return {"status": "healthy", "service": APP_NAME, "version": APP_VERSION}

    @app.get("/students/{student_id}/tests")
    def list_available_tests(
        student_id: str, manager: ExamManager = Depends(exam_manager_dep)
    ) -> list[dict[str, object]]:
        try:
            tests = manager.list_available_tests(student_id)
        except (ExamError, ValueError) as exc:
            _raise_http_error(exc)
        return [
            {
                "test_id": test.test_id,
                "title": test.title,
                "description": test.description,
                "question_count": test.question_count,
                "duration_minutes": test.duration_minutes,
            }
            for test in tests
        ]

    @app.get("/students/{student_id}/results")
    def list_student_results(
        student_id: str, manager: ExamManager = Depends(exam_manager_dep)
    ) -> list[dict[str, object]]:
        try:
            results = manager.list_student_results(student_id)
        except ExamError as exc:
            _raise_http_error(exc)
        return [_serialize_result(result) for result in results]

    @app.get("/students/{student_id}/statistics")
    def student_statistics(
        student_id: str, manager: ExamManager = Depends(exam_manager_dep)
    ) -> dict[str, object]:
        try:
            stats = manager.student_statistics(student_id)
        except ExamError as exc:
            _raise_http_error(exc)
        return {
            "available_tests": stats.available_tests,
            "completed_tests": stats.completed_tests,
            "average_percentage": stats.average_percentage,
        }

    @app.post("/attempts", status_code=201)
    def start_attempt(
        payload: StartAttemptPayload, manager: ExamManager = Depends(exam_manager_dep)
    ) -> dict[str, object]:
        try:
            attempt = manager.start_attempt(payload.test_id, payload.student_id)
        except (ExamError, ValueError) as exc:
            _raise_http_error(exc)
        return _serialize_view(attempt.renderable_view())

    @app.get("/attempts/{attempt_id}")
    def get_attempt(attempt_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            view = manager.renderable_view(attempt_id)
        except ExamError as exc:
            _raise_http_error(exc)
        return _serialize_view(view)

    @app.post("/attempts/{attempt_id}/selections")
    def record_selection(
        attempt_id: str,
        payload: SelectionPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            accepted = manager.record_selection(
                attempt_id, payload.question_id, payload.selected_option_index
            )
        except (ExamError, ValueError) as exc:
            _raise_http_error(exc)
        return {"accepted": accepted}

    @app.get("/attempts/{attempt_id}/tick")
    def tick(attempt_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            attempt = manager.get_attempt(attempt_id)
            timer_tick = manager.tick(attempt_id)
        except ExamError as exc:
            _raise_http_error(exc)
        body = _serialize_tick(timer_tick)
        result = attempt.session.result
        body["result"] = _serialize_result(result) if result is not None else None
        return body

    @app.post("/attempts/{attempt_id}/submit")
    def submit(
        attempt_id: str,
        payload: SubmitPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.submit_confirmed(attempt_id, payload.confirmed)
        except ExamError as exc:
            _raise_http_error(exc)
        return _serialize_result(result)

    @app.delete("/attempts/{attempt_id}", status_code=204)
    def cancel_attempt(attempt_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> Response:
        manager.cancel_attempt(attempt_id)
        return Response(status_code=204)

    @app.get("/results/{result_id}")
    def get_result(result_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            detailed = manager.detailed_result(result_id)
        except ExamError as exc:
            _raise_http_error(exc)
        return {
            "result": _serialize_result(detailed.result),
            "test_title": detailed.test_title,
            "questions": [
                {
                    "question_id": question.question_id,
                    "question_text": question.question_text,
                    "options": question.options,
                    "correct_option_index": question.correct_option_index,
                    "selected_option_index": question.selected_option_index,
                    "is_correct": question.is_correct,
                }
                for question in detailed.questions
            ],
        }

    @app.get("/tests/{test_id}/results")
    def list_test_results(
        test_id: str, manager: ExamManager = Depends(exam_manager_dep)
    ) -> list[dict[str, object]]:
        try:
            results = manager.list_test_results(test_id)
        except ExamError as exc:
            _raise_http_error(exc)
        return [_serialize_result(result) for result in results]

    return app


def start_api_server(
    exam_manager: ExamManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(exam_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="ExamApiServer", daemon=True)
    thread.start()
    return thread
