"""
Shared fixtures: an in-memory course API served through httpx.MockTransport.
"""

import json

import httpx
import pytest

from apollo.classroom import CourseApiClient

BASE_URL = "http://course.test/api"

VALID_STATUSES = ("not_started", "in_progress", "completed")


def lesson_payload(lesson_id: str, module_id: str, title: str, sort_order: int) -> dict:
    return {
        "id": lesson_id,
        "module_id": module_id,
        "title": title,
        "sort_order": sort_order,
        "estimated_minutes": 15,
        "content": {
            "sections": [
                {"type": "text", "body": f"Welcome to **{title}**."},
                {"type": "code", "language": "bash", "code": "echo hello"},
            ]
        },
        "exercises": [
            {
                "type": "command",
                "title": "Say hello",
                "instructions": "Run `echo hello`.",
                "success_criteria": ["Output is hello"],
                "hints": ["Use echo", "Type echo hello"],
            }
        ],
        "review_questions": [{"question": "What does echo do?", "answer": "Prints its arguments"}],
    }


class FakeCourseApi:
    """
    One topic ("t1") with two modules and three lessons:
    m1 -> l1, l2 and m2 -> l3. Progress lives in `self.progress`.
    """

    def __init__(self):
        self.requests: list[tuple[str, str]] = []
        self.fail_writes = False
        self.lessons = {
            "l1": lesson_payload("l1", "m1", "Install", 1),
            "l2": lesson_payload("l2", "m1", "Configure", 2),
            "l3": lesson_payload("l3", "m2", "Deploy", 1),
        }
        self.progress: dict[str, dict] = {}

    def topic_full(self) -> dict:
        def brief(lesson_id):
            lesson = self.lessons[lesson_id]
            return {k: lesson[k] for k in ("id", "module_id", "title", "sort_order", "content")}

        return {
            "id": "t1",
            "title": "Containers",
            "modules": [
                # Returned out of order on purpose
                {"id": "m2", "topic_id": "t1", "title": "Shipping", "sort_order": 2, "lessons": [brief("l3")]},
                {"id": "m1", "topic_id": "t1", "title": "Basics", "sort_order": 1,
                 "lessons": [brief("l2"), brief("l1")]},
            ],
        }

    def topic_progress(self) -> dict:
        return {
            "topic_id": "t1",
            "lessons": [
                {"lesson_id": lesson_id, "status": p["status"], "notes": p.get("notes") or ""}
                for lesson_id, p in self.progress.items()
            ],
        }

    def summary(self) -> dict:
        completed = sum(1 for p in self.progress.values() if p["status"] == "completed")
        total = len(self.lessons)
        return {
            "total_lessons": total,
            "completed_lessons": completed,
            "completion_percentage": 100.0 * completed / total,
            "active_topics": 1 if self.progress else 0,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        self.requests.append((request.method, path))

        if request.method == "GET":
            if path == "/topics":
                return httpx.Response(200, json=[{"id": "t1", "title": "Containers", "module_count": 2}])
            if path == "/topics/t1/full":
                return httpx.Response(200, json=self.topic_full())
            if path.startswith("/lessons/"):
                lesson = self.lessons.get(path.removeprefix("/lessons/"))
                if lesson is None:
                    return httpx.Response(404, json={"error": "lesson not found"})
                return httpx.Response(200, json=lesson)
            if path == "/progress/topics/t1":
                return httpx.Response(200, json=self.topic_progress())
            if path == "/progress/summary":
                return httpx.Response(200, json=self.summary())

        if request.method == "PUT" and path.startswith("/progress/lessons/"):
            lesson_id = path.removeprefix("/progress/lessons/")
            body = json.loads(request.content)
            if self.fail_writes:
                return httpx.Response(500, json={"error": "database unavailable"})
            if body.get("status") not in VALID_STATUSES:
                return httpx.Response(400, json={"error": "invalid status"})
            if lesson_id not in self.lessons:
                return httpx.Response(404, json={"error": "lesson not found"})
            self.progress[lesson_id] = {"status": body["status"], "notes": body.get("notes")}
            return httpx.Response(200, json={
                "lesson_id": lesson_id,
                "status": body["status"],
                "notes": body.get("notes") or "",
            })

        return httpx.Response(404, json={"error": "not found"})

    def count(self, method: str, path: str) -> int:
        return self.requests.count((method, path))


@pytest.fixture
def fake_api() -> FakeCourseApi:
    return FakeCourseApi()


@pytest.fixture
def client(fake_api) -> CourseApiClient:
    return CourseApiClient(BASE_URL, transport=httpx.MockTransport(fake_api.handler))
