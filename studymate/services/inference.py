from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import requests
import structlog

from studymate.errors import UpstreamError
from studymate.services.cache import cache
from studymate.services.logging import log_performance
from studymate.services.monitoring import AI_GENERATION_REQUESTS
from studymate.services import text_analysis

logger = structlog.get_logger()

HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY", "")
SUMMARY_MODEL = os.getenv("HF_SUMMARY_MODEL", "facebook/bart-large-cnn")
INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"
# No timeout unless configured; the call runs to completion or transport failure
INFERENCE_TIMEOUT: Optional[float] = float(os.environ["HF_TIMEOUT"]) if os.getenv("HF_TIMEOUT") else None
SUMMARY_CACHE_TTL = 24 * 3600

FEATURES = ("summary", "quiz", "flashcards", "keyPoints")


@dataclass
class RemoteSummary:
    summary: Optional[str] = None
    error: Optional[UpstreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.summary)


def _cache_key(text: str) -> str:
    digest = hashlib.sha256(f"{SUMMARY_MODEL}\n{text}".encode("utf-8")).hexdigest()
    return f"summary:{digest}"


def request_remote_summary(text: str) -> RemoteSummary:
    """Single attempt at the hosted summarization model. Never raises."""
    if not HUGGINGFACE_API_KEY:
        return RemoteSummary(error=UpstreamError("Remote inference is not configured"))

    try:
        response = requests.post(
            INFERENCE_URL.format(model=SUMMARY_MODEL),
            headers={"Authorization": f"Bearer {HUGGINGFACE_API_KEY}"},
            json={
                "inputs": text,
                "parameters": {"max_length": 200, "min_length": 80, "do_sample": False},
            },
            timeout=INFERENCE_TIMEOUT,
        )
    except requests.RequestException as e:
        return RemoteSummary(error=UpstreamError(f"Inference request failed: {e}"))

    if not 200 <= response.status_code < 300:
        return RemoteSummary(error=UpstreamError(
            f"Inference API error: {response.status_code}", details={"status": response.status_code}
        ))

    try:
        payload = response.json()
    except ValueError as e:
        return RemoteSummary(error=UpstreamError(f"Malformed inference payload: {e}"))

    if isinstance(payload, dict) and payload.get("error"):
        return RemoteSummary(error=UpstreamError(str(payload["error"])))

    summary = None
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        summary = payload[0].get("summary_text")
    if not summary:
        return RemoteSummary(error=UpstreamError("Inference payload has no summary_text"))
    return RemoteSummary(summary=summary)


def generate_summary(text: str) -> str:
    key = _cache_key(text)
    cached = cache.get(key)
    if cached:
        AI_GENERATION_REQUESTS.labels(type="summary", status="cached").inc()
        return cached

    result = request_remote_summary(text)
    if not result.ok:
        logger.warning("remote_summary_failed", model=SUMMARY_MODEL, error=result.error.message if result.error else None)
        AI_GENERATION_REQUESTS.labels(type="summary", status="fallback").inc()
        return text_analysis.generate_smart_summary(text)

    cache.set(key, result.summary, expire=SUMMARY_CACHE_TTL)
    AI_GENERATION_REQUESTS.labels(type="summary", status="remote").inc()
    return result.summary


def normalize_features(features: Optional[Iterable[str]]) -> list:
    """Known features only, de-duplicated, in request order. None means all."""
    if features is None:
        return list(FEATURES)
    return [f for f in dict.fromkeys(features) if f in FEATURES]


@log_performance("generate_study_materials")
def generate_study_materials(text: str, features: Iterable[str]) -> Dict:
    """Build the artifacts for the requested features only."""
    requested = set(features)
    results: Dict = {}
    if "summary" in requested:
        results["summary"] = generate_summary(text)
    if "quiz" in requested:
        results["quiz"] = text_analysis.generate_quiz(text)
        AI_GENERATION_REQUESTS.labels(type="quiz", status="local").inc()
    if "flashcards" in requested:
        results["flashcards"] = text_analysis.generate_flashcards(text)
        AI_GENERATION_REQUESTS.labels(type="flashcards", status="local").inc()
    if "keyPoints" in requested:
        results["keyPoints"] = text_analysis.extract_key_points(text)
        AI_GENERATION_REQUESTS.labels(type="keyPoints", status="local").inc()
    return results
