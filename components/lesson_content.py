# components/lesson_content.py
from models.lesson import Lesson

from .base import Component


class LessonContent(Component):
    """Lesson title, description, video and the mark-complete control.

    Completion is forwarded to ``complete_action``, the URL the form posts to;
    the component itself keeps no state.
    """

    template_name = "components/lesson_content.html"

    def __init__(self, lesson, course_id: str, is_completed: bool, complete_action: str = "/api/progress"):
        self.lesson = lesson if isinstance(lesson, Lesson) else Lesson.model_validate(lesson)
        self.course_id = course_id
        self.is_completed = is_completed
        self.complete_action = complete_action

    def context(self) -> dict:
        return {
            "lesson": self.lesson,
            "course_id": self.course_id,
            "is_completed": self.is_completed,
            "complete_action": self.complete_action,
        }
