"""
CourseApiClient - Async HTTP access to the course and progress API.

Thin wrapper over httpx: builds URLs, decodes JSON into schema models and
turns non-2xx responses and malformed bodies into ApiError.
"""

import logging
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from apollo.config import DEFAULT_API_URL, DEFAULT_HTTP_TIMEOUT, Settings
from apollo.errors import ApiError
from apollo.schemas import (
    LessonDetail,
    LessonProgress,
    LessonStatus,
    ProgressSummary,
    TopicFull,
    TopicProgress,
    TopicSummary,
    UpdateProgressInput,
)

logger = logging.getLogger(__name__)


M = TypeVar("M", bound=BaseModel)


def _segment(value: str) -> str:
    return quote(value, safe="")


def _decode(model: type[M], data: Any, path: str) -> M:
    """Validate a 200 response payload; a malformed one is an ApiError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} payload from {path}: {e.error_count()} errors")
        raise ApiError(200, f"invalid {model.__name__} payload", url=path) from e


class CourseApiClient:
    """
    Client for the course API.

    Args:
        base_url: API root, e.g. http://localhost:8080/api
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CourseApiClient":
        return cls(base_url=settings.api_url, timeout=settings.http_timeout)

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> "CourseApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(0, f"request failed: {e}", url=path) from e

        if response.is_error:
            raise ApiError(response.status_code, _error_message(response), url=path)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{method} {path} returned a body that is not JSON")
            raise ApiError(response.status_code, "invalid response body", url=path) from e

    # -------------------------------------------------------------------------
    # Topics and lessons
    # -------------------------------------------------------------------------

    async def fetch_topics(self) -> list[TopicSummary]:
        data = await self._request("GET", "/topics")
        return [_decode(TopicSummary, item, "/topics") for item in data or []]

    async def fetch_topic_full(self, topic_id: str) -> TopicFull:
        path = f"/topics/{_segment(topic_id)}/full"
        return _decode(TopicFull, await self._request("GET", path), path)

    async def fetch_lesson(self, lesson_id: str) -> LessonDetail:
        path = f"/lessons/{_segment(lesson_id)}"
        return _decode(LessonDetail, await self._request("GET", path), path)

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    async def fetch_topic_progress(self, topic_id: str) -> TopicProgress:
        path = f"/progress/topics/{_segment(topic_id)}"
        return _decode(TopicProgress, await self._request("GET", path), path)

    async def fetch_progress_summary(self) -> ProgressSummary:
        data = await self._request("GET", "/progress/summary")
        return _decode(ProgressSummary, data, "/progress/summary")

    async def update_lesson_progress(
        self,
        lesson_id: str,
        status: LessonStatus | str,
        notes: Optional[str] = None,
    ) -> LessonProgress:
        """
        Write a lesson's status and notes.

        A status string outside LessonStatus is sent unchanged so the server
        decides validity (it answers 400).

        Raises:
            ApiError: 400 for an unrecognized status, 404 for an unknown lesson
        """
        if isinstance(status, LessonStatus):
            payload = UpdateProgressInput(status=status, notes=notes).to_payload()
        else:
            payload = {"status": status}
            if notes is not None:
                payload["notes"] = notes

        logger.info(f"Updating progress for lesson {lesson_id}: {payload['status']}")
        path = f"/progress/lessons/{_segment(lesson_id)}"
        data = await self._request("PUT", path, json=payload)
        return _decode(LessonProgress, data, path)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"{response.request.method} {response.request.url.path} returned {response.status_code}"
