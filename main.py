"""
FastAPI Backend for the Leadis screening engine

Endpoints:
    POST   /screening             - Store the screening form for a user
    POST   /start-session         - Build the question set, return the first item
    GET    /session/{id}          - Current quiz state
    GET    /predictor-health      - Prediction service reachability
    POST   /answer                - Record an answer, get the next item
    POST   /skip                  - Skip the current item
    POST   /finish                - Final metrics, risk scores, analysis
    GET    /user-data/{user_id}   - Stored user-data record
    DELETE /user-data/{user_id}   - Delete everything stored for a user
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from config import configure_logging, settings
from quiz_flow import QuizFlow, QuizRun
from redis_store import RedisStore
from screening.question_bank import QuestionBankBuilder
from screening.user_record import generate_user_id, summarize
from services import NarrativeAnalyzer, PredictionClient, QuestionGenerator

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# ==================== Initialize ====================

app = FastAPI(
    title="Leadis API",
    description="Adaptive screening quiz for learning differences",
    version="1.0.0"
)

# Allow frontend to connect
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize components
store = RedisStore()
flow = QuizFlow(
    store=store,
    builder=QuestionBankBuilder(
        generator=QuestionGenerator(),
        store=store,
        cache_ttl_seconds=settings.question_cache_ttl_seconds,
    ),
    predictor=PredictionClient(),
    analyzer=NarrativeAnalyzer(),
)

# Active quiz runs, keyed by session id
runs: Dict[str, QuizRun] = {}

# ==================== Request/Response Models ====================

class ScreeningRequest(BaseModel):
    user_id: Optional[str] = None  # Auto-generate if not provided
    form: Dict[str, Any]

class StartSessionRequest(BaseModel):
    user_id: str
    force_regenerate: bool = False

class AnswerRequest(BaseModel):
    session_id: str
    answer: Any = None
    modality_extras: Optional[Dict[str, Any]] = None
    game_data: Optional[Dict[str, Any]] = None  # Raw minigame output

class SessionRequest(BaseModel):
    session_id: str

class AnswerResponse(BaseModel):
    question_id: int
    is_correct: bool
    new_difficulty: Optional[str] = None
    category_accuracy: Optional[float] = None
    follow_up_inserted: bool = False
    next_question: Optional[dict] = None
    complete: bool

# ==================== Helper Functions ====================

def get_run(session_id: str) -> QuizRun:
    run = runs.get(session_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Session not found. Start a new session first.")
    return run


def question_payload(run: QuizRun) -> Optional[dict]:
    """Current item as sent to the frontend, or None when the quiz is done."""
    current = run.current
    return current.to_dict() if current is not None else None


def session_state(run: QuizRun) -> dict:
    return {
        "session_id": run.session_id,
        "user_id": run.user_id,
        "question_source": run.question_source,
        "fallback_reason": run.fallback_reason,
        "position": run.cursor,
        "total_questions": len(run.questions),
        "current_question": question_payload(run),
        "complete": run.is_complete,
        "finished": run.finished,
        "stats": run.tracker.stats(),
        "performance": run.controller.to_dict(),
    }

# ==================== Endpoints ====================

@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Leadis API is running"}


@app.get("/predictor-health")
def predictor_health():
    """Reachability of the external prediction service."""
    result = flow.predictor.check_health() if flow.predictor is not None else None
    if result is None or result.is_fallback:
        reason = result.reason if result is not None else "no prediction service configured"
        return {"status": "unavailable", "reason": reason}
    return {"status": "ok", "service": result.data}


@app.post("/screening")
def submit_screening(request: ScreeningRequest):
    """
    Store the screening form and map it into the user record.

    Any cached questions are discarded so the next quiz fits the new answers.
    """
    user_id = request.user_id or generate_user_id()
    record = flow.register_screening(user_id, request.form)
    return {
        "user_id": user_id,
        "profile": flow.profile_for(user_id).to_dict(),
        "summary": summarize(record),
    }


@app.post("/start-session")
def start_session(request: StartSessionRequest):
    """
    Start a new quiz attempt.

    Returns the first item; the question set falls back to the built-in
    library when generation is unavailable.
    """
    run = flow.start(request.user_id, force_regenerate=request.force_regenerate)
    runs[run.session_id] = run
    return session_state(run)


@app.get("/session/{session_id}")
def get_session(session_id: str):
    return session_state(get_run(session_id))


@app.post("/answer", response_model=AnswerResponse)
def answer(request: AnswerRequest):
    """
    Record an answer to the current item.

    Wrong answers may insert an easier follow-up right after it.
    """
    run = get_run(request.session_id)
    if run.current is None:
        raise HTTPException(status_code=409, detail="No question left to answer. Finish the session.")

    outcome = flow.answer(run, request.answer, request.modality_extras, request.game_data)
    return AnswerResponse(
        **outcome,
        next_question=question_payload(run),
        complete=run.is_complete,
    )


@app.post("/skip")
def skip(request: SessionRequest):
    """Skip the current item (also used when an activity fails to load)."""
    run = get_run(request.session_id)
    if run.current is None:
        raise HTTPException(status_code=409, detail="No question left to skip. Finish the session.")

    outcome = flow.skip(run)
    return {**outcome, "next_question": question_payload(run), "complete": run.is_complete}


@app.post("/finish")
def finish(request: SessionRequest):
    """
    End the quiz: final metrics, risk scores (model or heuristic), analysis.

    The run is released afterwards; its results live in the user record.
    """
    run = get_run(request.session_id)
    outcome = flow.finish(run)
    runs.pop(request.session_id, None)
    return outcome


@app.get("/user-data/{user_id}")
def get_user_data(user_id: str):
    record = store.load(user_id)
    if not record:
        raise HTTPException(status_code=404, detail="No data stored for this user")
    return {"record": record, "summary": summarize(record)}


@app.delete("/user-data/{user_id}")
def delete_user_data(user_id: str):
    """
    Delete a user's stored data (reset).
    """
    store.delete_user(user_id)
    for session_id in [sid for sid, run in runs.items() if run.user_id == user_id]:
        del runs[session_id]
    return {"status": "deleted", "user_id": user_id}


# ==================== Run Server ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
