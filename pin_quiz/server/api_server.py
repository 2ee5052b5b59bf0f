"""FastAPI server that exposes the quiz host and player endpoints."""

from __future__ import annotations

import logging
from typing import TypeVar

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
import uvicorn

from pin_quiz.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from pin_quiz.constants.network_constants import API_PREFIX, DEFAULT_HOST, DEFAULT_PORT
from pin_quiz.core.errors import (
    AnswerRejectedError,
    EntityNotFoundError,
    JoinRejectedError,
    SessionTransitionError,
)
from pin_quiz.core.quiz_importer import QuizImportError
from pin_quiz.core.quiz_manager import QuizManager
from pin_quiz.server.schemas import (
    AdvanceRequest,
    AnswerOut,
    AnswerSubmit,
    PlayerCreate,
    PlayerOut,
    PlayerResponseOut,
    QuestionCreate,
    QuestionOut,
    QuizCreate,
    QuizOut,
    QuizWithQuestionsOut,
    ResponseCreate,
    ScoreUpdate,
    SessionCreate,
    SessionOut,
    SessionUpdate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _or_404(value: T | None, kind: str) -> T:
    if value is None:
        raise HTTPException(status_code=404, detail=f"{kind} not found")
    return value


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg", ""),
            }
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"message": "Invalid request data", "errors": errors})

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(EntityNotFoundError)
    async def handle_not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": f"{exc.kind} not found"})

    @app.exception_handler(RuntimeError)
    async def handle_conflict(request: Request, exc: RuntimeError) -> JSONResponse:
        if isinstance(exc, (SessionTransitionError, AnswerRejectedError, JoinRejectedError)):
            return JSONResponse(status_code=409, content={"detail": str(exc)})
        return await handle_unexpected_error(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def _build_router(quiz_manager_dep) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # --- Quizzes ---

    @router.get("/quizzes", response_model=list[QuizOut])
    def list_quizzes(manager: QuizManager = Depends(quiz_manager_dep)) -> list[QuizOut]:
        return [QuizOut.from_model(quiz) for quiz in manager.list_quizzes()]

    @router.post("/quizzes", response_model=QuizWithQuestionsOut, status_code=201)
    def create_quiz(
        payload: QuizCreate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> QuizWithQuestionsOut:
        quiz = manager.create_quiz(
            title=payload.title,
            time_per_question=payload.timePerQuestion,
            description=payload.description,
            created_by=payload.createdBy,
            questions=[question.to_draft() for question in payload.questions],
        )
        return QuizWithQuestionsOut.from_quiz(quiz)

    @router.post("/quizzes/import", response_model=QuizWithQuestionsOut, status_code=201)
    async def import_quiz(
        request: Request,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> QuizWithQuestionsOut:
        """Create a quiz from a plain-text quiz document."""
        raw = await request.body()
        try:
            document = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPException(status_code=400, detail="Quiz document must be UTF-8 text") from exc
        try:
            quiz = manager.import_quiz_text(document)
        except QuizImportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return QuizWithQuestionsOut.from_quiz(quiz)

    @router.get("/quizzes/{quiz_id}", response_model=QuizWithQuestionsOut)
    def get_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> QuizWithQuestionsOut:
        quiz = _or_404(manager.get_quiz_with_questions(quiz_id), "Quiz")
        return QuizWithQuestionsOut.from_quiz(quiz)

    @router.get("/quizzes/{quiz_id}/export", response_class=PlainTextResponse)
    def export_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> str:
        return _or_404(manager.export_quiz_text(quiz_id), "Quiz")

    @router.post("/quizzes/{quiz_id}/questions", response_model=QuestionOut, status_code=201)
    def add_question(
        quiz_id: str,
        payload: QuestionCreate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> QuestionOut:
        question = _or_404(manager.add_question(quiz_id, payload.to_draft()), "Quiz")
        return QuestionOut.from_model(question)

    # --- Sessions ---

    @router.post("/sessions", response_model=SessionOut, status_code=201)
    def create_session(
        payload: SessionCreate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> SessionOut:
        session = _or_404(manager.create_session(payload.quizId, host_id=payload.hostId), "Quiz")
        return SessionOut.from_model(session)

    @router.get("/sessions/pin/{pin}", response_model=SessionOut)
    def get_session_by_pin(pin: str, manager: QuizManager = Depends(quiz_manager_dep)) -> SessionOut:
        return SessionOut.from_model(_or_404(manager.get_session_by_pin(pin), "Session"))

    @router.get("/sessions/{session_id}", response_model=SessionOut)
    def get_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> SessionOut:
        return SessionOut.from_model(_or_404(manager.get_session(session_id), "Session"))

    @router.patch("/sessions/{session_id}", response_model=SessionOut)
    def update_session(
        session_id: str,
        payload: SessionUpdate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> SessionOut:
        session = manager.update_session(session_id, payload.to_changes())
        return SessionOut.from_model(_or_404(session, "Session"))

    @router.post("/sessions/{session_id}/start", response_model=SessionOut)
    def start_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> SessionOut:
        return SessionOut.from_model(_or_404(manager.start_session(session_id), "Session"))

    @router.post("/sessions/{session_id}/advance", response_model=SessionOut)
    def advance_session(
        session_id: str,
        payload: AdvanceRequest | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> SessionOut:
        from_index = payload.fromIndex if payload is not None else None
        session = manager.advance_session(session_id, from_index=from_index)
        return SessionOut.from_model(_or_404(session, "Session"))

    # --- Players ---

    @router.post("/sessions/{session_id}/players", response_model=PlayerOut, status_code=201)
    def join_session(
        session_id: str,
        payload: PlayerCreate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> PlayerOut:
        player = _or_404(manager.join_session(session_id, payload.name), "Session")
        return PlayerOut.from_model(player)

    @router.get("/sessions/{session_id}/players", response_model=list[PlayerOut])
    def get_session_players(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> list[PlayerOut]:
        return [PlayerOut.from_model(player) for player in manager.get_session_players(session_id)]

    @router.get("/players/{player_id}", response_model=PlayerOut)
    def get_player(player_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> PlayerOut:
        return PlayerOut.from_model(_or_404(manager.get_player(player_id), "Player"))

    @router.patch("/players/{player_id}/score", response_model=PlayerOut)
    def update_player_score(
        player_id: str,
        payload: ScoreUpdate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> PlayerOut:
        player = manager.update_player_score(player_id, payload.score)
        return PlayerOut.from_model(_or_404(player, "Player"))

    @router.get("/players/{player_id}/responses", response_model=list[PlayerResponseOut])
    def get_player_responses(
        player_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[PlayerResponseOut]:
        return [PlayerResponseOut.from_model(r) for r in manager.get_player_responses(player_id)]

    # --- Responses ---

    @router.post("/responses", response_model=PlayerResponseOut, status_code=201)
    def create_response(
        payload: ResponseCreate,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> PlayerResponseOut:
        response = manager.record_response(
            player_id=payload.playerId,
            question_id=payload.questionId,
            is_correct=payload.isCorrect,
            selected_answer=payload.selectedAnswer,
            response_time=payload.responseTime,
        )
        return PlayerResponseOut.from_model(response)

    @router.post("/sessions/{session_id}/answers", response_model=AnswerOut, status_code=201)
    def submit_answer(
        session_id: str,
        payload: AnswerSubmit,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> AnswerOut:
        player = _or_404(manager.get_player(payload.playerId), "Player")
        if player.session_id != session_id:
            raise HTTPException(status_code=404, detail="Player not found")
        outcome = manager.submit_answer(
            player_id=payload.playerId,
            question_id=payload.questionId,
            selected_answer=payload.selectedAnswer,
            time_remaining=payload.timeRemaining,
        )
        return AnswerOut(
            response=PlayerResponseOut.from_model(outcome.response),
            player=PlayerOut.from_model(outcome.player),
        )

    @router.get("/questions/{question_id}/responses", response_model=list[PlayerResponseOut])
    def get_question_responses(
        question_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[PlayerResponseOut]:
        return [PlayerResponseOut.from_model(r) for r in manager.get_question_responses(question_id)]

    return router


def create_api_app(quiz_manager: QuizManager, cors_origins: list[str] | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)
    app.include_router(_build_router(quiz_manager_dep), prefix=API_PREFIX)
    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
    cors_origins: list[str] | None = None,
) -> None:
    """Serve the API with uvicorn until the process is interrupted."""
    app = create_api_app(quiz_manager, cors_origins=cors_origins)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    logger.info("Serving %s on http://%s:%s%s", APP_NAME, host, port, API_PREFIX)
    server.run()
