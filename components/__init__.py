from .base import render
from .lesson_content import LessonContent
from .progress_bar import ProgressBar

__all__ = ["render", "LessonContent", "ProgressBar"]
