# models/quiz.py
from pydantic import BaseModel, Field
from typing import List, Optional

from .common import PartialUpdate, object_id
from .course import CourseId
from .lesson import LessonId

quiz_id_schema = object_id("Invalid quiz ID format", required="Quiz ID is required")


class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2, max_length=6)
    correctAnswer: int = Field(..., ge=0)
    points: float = Field(1, ge=0)


class CreateQuiz(BaseModel):
    course: CourseId
    lesson: Optional[LessonId] = None
    title: str = Field(..., min_length=3, max_length=200)
    description: str = ""
    questions: List[QuizQuestion] = Field(..., min_length=1)
    timeLimit: Optional[int] = Field(None, ge=1)  # minutes
    passingScore: float = Field(60, ge=0, le=100)  # percentage


class UpdateQuiz(PartialUpdate):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    questions: Optional[List[QuizQuestion]] = Field(None, min_length=1)
    timeLimit: Optional[int] = Field(None, ge=1)
    passingScore: Optional[float] = Field(None, ge=0, le=100)


class QuizAnswer(BaseModel):
    questionIndex: int = Field(..., ge=0)
    selectedAnswer: int = Field(..., ge=0)


class SubmitQuiz(BaseModel):
    quizId: str = Field(..., min_length=1)
    answers: List[QuizAnswer] = Field(..., min_length=1)


class QuizQuery(BaseModel):
    courseId: Optional[str] = Field(None, min_length=1)
    lessonId: Optional[str] = Field(None, min_length=1)


class QuizResult(BaseModel):
    correctAnswers: List[int]
    totalQuestions: int
    totalScore: float
    earnedPoints: float
    percentage: int
    isPassed: bool
    passingScore: float
