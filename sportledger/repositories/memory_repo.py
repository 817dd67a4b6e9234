# sportledger/repositories/memory_repo.py
# Demo mode: same interface as the Sheets repositories, nothing leaves the process.
from typing import Iterable, Optional

from sportledger.models.defaults import default_settings
from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings, normalize_settings


class InMemoryLessonRepository:
    def __init__(self, lessons: Iterable[Lesson] = ()):
        self._lessons: dict[str, Lesson] = {l.id: l for l in lessons}

    def list_lessons(self) -> list[Lesson]:
        return list(self._lessons.values())

    def add_lesson(self, lesson: Lesson) -> Lesson:
        self._lessons[lesson.id] = lesson
        return lesson

    def update_lesson(self, lesson: Lesson) -> Lesson:
        if lesson.id not in self._lessons:
            raise KeyError(f"Lesson not found: {lesson.id}")
        self._lessons[lesson.id] = lesson
        return lesson

    def delete_lesson(self, lesson_id: str) -> None:
        if self._lessons.pop(lesson_id, None) is None:
            raise KeyError(f"Lesson not found: {lesson_id}")

    def toggle_invoiced(self, lesson_id: str) -> Lesson:
        lesson = self._lessons.get(lesson_id)
        if lesson is None:
            raise KeyError(f"Lesson not found: {lesson_id}")
        updated = lesson.with_invoiced(not lesson.invoiced)
        self._lessons[lesson_id] = updated
        return updated


class InMemorySettingsRepository:
    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings if settings is not None else default_settings()

    def load_settings(self) -> Settings:
        return self._settings

    def save_settings(self, settings: Settings) -> Settings:
        self._settings = normalize_settings(settings)
        return self._settings
