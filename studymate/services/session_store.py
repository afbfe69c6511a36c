"""
Study session history persisted to study-sessions.json
"""
from collections import Counter
from typing import Dict, List, Optional

import structlog
from pydantic import ValidationError as SchemaError

from studymate.errors import NotFoundError
from studymate.models import StudySession
from studymate.services.json_store import JsonFileStore

logger = structlog.get_logger()

# Global cap across all users, most recent first
MAX_SESSIONS = 50
PREVIEW_CHARS = 150


class SessionStore(JsonFileStore):

    def _read_fallback(self) -> List[dict]:
        return []

    def _sessions(self) -> List[StudySession]:
        sessions = []
        for record in self.read_all():
            try:
                sessions.append(StudySession.model_validate(record))
            except SchemaError as e:
                logger.warning("session_record_invalid", record_id=record.get("id"), error=str(e))
        return sessions

    def append(self, user_id: str, text: str, features: List[str], results: Dict,
               input_type: str = "text", file_name: Optional[str] = None) -> StudySession:
        preview = text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")
        session = StudySession(
            id=self.next_id(),
            user_id=user_id,
            original_text=preview,
            full_text_length=len(text),
            results=results,
            features=list(features),
            word_count=len(text.split()),
            input_type=input_type,
            file_name=file_name,
        )

        records = self.read_all()
        records.insert(0, session.to_record())
        evicted = len(records) - MAX_SESSIONS
        if evicted > 0:
            logger.info("sessions_evicted", count=evicted)
        if not self.write_all(records[:MAX_SESSIONS]):
            logger.warning("session_saved_in_memory_only", session_id=session.id)
        return session

    def list_by_user(self, user_id: str, limit: Optional[int] = None) -> List[StudySession]:
        sessions = [s for s in self._sessions() if s.user_id == user_id]
        return sessions if limit is None else sessions[:max(limit, 0)]

    def get(self, session_id: str, user_id: str) -> StudySession:
        for session in self._sessions():
            if session.id == session_id and session.user_id == user_id:
                return session
        raise NotFoundError("Study session not found")

    def stats(self, user_id: str) -> Dict:
        sessions = self.list_by_user(user_id)
        total_words = sum(s.word_count for s in sessions)

        feature_counts: Counter = Counter()
        for s in sessions:
            feature_counts.update(s.features)
        # later feature wins a tie, "summary" when nothing was requested
        most_used = "summary"
        for feature in feature_counts:
            most_used = most_used if feature_counts[most_used] > feature_counts[feature] else feature

        return {
            "totalSessions": len(sessions),
            "totalWordsProcessed": total_words,
            "averageWordsPerSession": round(total_words / len(sessions)) if sessions else 0,
            "mostUsedFeature": most_used,
            "firstSession": sessions[-1].timestamp if sessions else None,
            "lastSession": sessions[0].timestamp if sessions else None,
            "inputTypes": dict(Counter(s.input_type for s in sessions)),
        }
