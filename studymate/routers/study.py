import os
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from starlette.concurrency import run_in_threadpool
import structlog

from studymate.auth import get_current_user
from studymate.db import get_session_store
from studymate.errors import ValidationError
from studymate.middleware.rate_limit import ai_generation_limit
from studymate.models import ProcessRequest, TokenIdentity
from studymate.services.extraction import extract_text
from studymate.services.inference import generate_study_materials, normalize_features
from studymate.services.monitoring import STUDY_SESSIONS_CREATED
from studymate.services.session_store import SessionStore

logger = structlog.get_logger()

router = APIRouter(prefix="/api/study", tags=["study"])

MIN_TEXT_LENGTH = 30
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_MB", "25")) * 1024 * 1024


def _check_text(text: Optional[str]) -> str:
    clean = (text or "").strip()
    if len(clean) < MIN_TEXT_LENGTH:
        raise ValidationError(f"Please provide at least {MIN_TEXT_LENGTH} characters of text")
    return clean


def _check_features(features: Optional[List[str]]) -> List[str]:
    selected = normalize_features(features)
    if not selected:
        raise ValidationError("Please select at least one feature to generate")
    return selected


def _run_pipeline(sessions: SessionStore, user: TokenIdentity, text: str, features: List[str],
                  input_type: str, file_name: Optional[str] = None) -> Dict:
    results = generate_study_materials(text, features)
    session = sessions.append(user.user_id, text, features, results, input_type=input_type, file_name=file_name)
    STUDY_SESSIONS_CREATED.labels(input_type=input_type).inc()
    logger.info("study_session_created", session_id=session.id, user_id=user.user_id,
                features=features, input_type=input_type, words=session.word_count)
    return {
        "success": True,
        "message": "Study materials generated successfully!",
        "sessionId": session.id,
        **results,
    }


@router.post("/process")
@ai_generation_limit()
def process(
    request: Request,
    payload: ProcessRequest,
    user: TokenIdentity = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    text = _check_text(payload.text)
    features = _check_features(payload.features)
    return _run_pipeline(sessions, user, text, features, input_type="text")


@router.post("/process-file")
@ai_generation_limit()
async def process_file(
    request: Request,
    file: UploadFile = File(...),
    features: Optional[List[str]] = Form(None),
    user: TokenIdentity = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    selected = _check_features(features)
    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty")
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB upload limit")

    file_name = file.filename or "upload"
    extracted = await run_in_threadpool(extract_text, content, file_name, file.content_type)
    text = _check_text(extracted.text)

    response = await run_in_threadpool(
        _run_pipeline, sessions, user, text, selected, extracted.input_type, file_name
    )
    response.update({"inputType": extracted.input_type, "fileName": file_name})
    return response


@router.get("/history")
def history(
    limit: int = Query(20),
    user: TokenIdentity = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    user_sessions = sessions.list_by_user(user.user_id, limit=limit)
    return {
        "success": True,
        "sessions": [s.to_record() for s in user_sessions],
        "total": len(user_sessions),
    }


@router.get("/session/{session_id}")
def get_session(
    session_id: str,
    user: TokenIdentity = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    session = sessions.get(session_id, user.user_id)
    return {"success": True, "session": session.to_record()}


@router.get("/stats")
def stats(
    user: TokenIdentity = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    return {"success": True, "stats": sessions.stats(user.user_id)}
