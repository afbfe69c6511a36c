import os
from pathlib import Path
from typing import Optional, Union

import structlog
from fastapi import FastAPI, Request

from studymate.services.account_store import AccountStore
from studymate.services.session_store import SessionStore

logger = structlog.get_logger()

DATA_DIR = os.getenv("DATA_DIR", "./data")
USERS_FILE = "users.json"
SESSIONS_FILE = "study-sessions.json"


def init_db(app: FastAPI, data_dir: Optional[Union[str, Path]] = None) -> None:
    """
    Builds the account and session stores once per process and attaches them
    to the application state, where the request dependencies pick them up.
    """
    base = Path(data_dir or DATA_DIR)
    app.state.accounts = AccountStore(base / USERS_FILE)
    app.state.sessions = SessionStore(base / SESSIONS_FILE)
    # creates missing files up front
    users = app.state.accounts.read_all()
    sessions = app.state.sessions.read_all()
    logger.info("stores_initialized", data_dir=str(base), users=len(users), sessions=len(sessions))


def get_account_store(request: Request) -> AccountStore:
    return request.app.state.accounts


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions
