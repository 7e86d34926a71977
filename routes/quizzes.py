# routes/quizzes.py
from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Sequence
import logging

from database import get_db
from models.common import round_half_up, serialize, to_object_id
from models.quiz import CreateQuiz, QuizAnswer, QuizQuery, QuizQuestion, QuizResult, SubmitQuiz, UpdateQuiz, quiz_id_schema
from models.user import TokenPayload
from .auth import require_admin, require_auth, require_student
from .dependencies import path_id, query_params, verify_enrollment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def score_quiz(questions: Sequence[dict], answers: Sequence[QuizAnswer], passing_score: float) -> QuizResult:
    """Grade answers against the quiz questions.

    Each answer is matched to its question by ``questionIndex``; unanswered
    questions earn nothing.
    """
    selected = {}
    for answer in answers:
        selected.setdefault(answer.questionIndex, answer.selectedAnswer)

    total_score = 0
    earned_points = 0
    correct_answers = []
    for index, question in enumerate(questions):
        points = question.get("points", 1)
        total_score += points
        correct_answers.append(question["correctAnswer"])
        if selected.get(index) == question["correctAnswer"]:
            earned_points += points

    percentage = round_half_up(earned_points / total_score * 100) if total_score > 0 else 0
    return QuizResult(
        correctAnswers=correct_answers,
        totalQuestions=len(questions),
        totalScore=total_score,
        earnedPoints=earned_points,
        percentage=percentage,
        isPassed=percentage >= passing_score,
        passingScore=passing_score,
    )


def strip_answers(quiz: dict) -> dict:
    return {
        **quiz,
        "questions": [
            {"question": q["question"], "options": q["options"], "points": q.get("points", 1)}
            for q in quiz.get("questions", [])
        ],
    }


def check_answer_indices(questions: Sequence[QuizQuestion]):
    for index, question in enumerate(questions):
        if question.correctAnswer >= len(question.options):
            raise HTTPException(
                status_code=400,
                detail=f"Question {index + 1}: correct answer must be one of the options",
            )


async def load_quiz(db: AsyncIOMotorDatabase, quiz_id: str) -> dict:
    quiz = await db.quizzes.find_one({"_id": to_object_id(quiz_id)})
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("")
async def list_quizzes(
    query: QuizQuery = Depends(query_params(QuizQuery)),
    current_user: TokenPayload = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    student_id = to_object_id(current_user.userId)
    filter = {}
    if query.courseId:
        await verify_enrollment(
            db, current_user.userId, query.courseId,
            "You must be enrolled in this course to view quizzes",
        )
        filter["course"] = to_object_id(query.courseId)
    else:
        enrollments = await db.enrollments.find(
            {"student": student_id, "status": "enrolled"}, {"course": 1}
        ).to_list(None)
        filter["course"] = {"$in": [e["course"] for e in enrollments]}
    if query.lessonId:
        filter["lesson"] = to_object_id(query.lessonId)

    quizzes = await db.quizzes.find(filter).sort("createdAt", -1).to_list(None)
    attempts = await db.quiz_attempts.find(
        {"student": student_id, "quiz": {"$in": [q["_id"] for q in quizzes]}}
    ).sort("completedAt", -1).to_list(None)

    result: List[dict] = []
    for quiz in quizzes:
        quiz_attempts = [a for a in attempts if a["quiz"] == quiz["_id"]]
        item = strip_answers(quiz)
        item["attempts"] = quiz_attempts
        item["latestAttempt"] = quiz_attempts[0] if quiz_attempts else None
        result.append(item)
    return {"data": {"quizzes": serialize(result)}}


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: str,
    current_user: TokenPayload = Depends(require_auth),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    path_id(quiz_id_schema, quiz_id, "Invalid quiz ID")
    quiz = await load_quiz(db, quiz_id)
    if current_user.role == "student":
        await verify_enrollment(
            db, current_user.userId, quiz["course"],
            "You must be enrolled in this course to view this quiz",
        )
        quiz = strip_answers(quiz)
    return {"data": serialize(quiz)}


@router.post("/admin", status_code=201)
@router.post("", status_code=201)
async def create_quiz(
    quiz: CreateQuiz,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await db.courses.find_one({"_id": to_object_id(quiz.course)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if str(course["instructor"]) != current_user.userId:
        raise HTTPException(status_code=403, detail="Forbidden. You can only add quizzes to your own courses.")

    check_answer_indices(quiz.questions)

    now = datetime.utcnow()
    quiz_dict = quiz.model_dump()
    quiz_dict["course"] = course["_id"]
    if quiz.lesson:
        quiz_dict["lesson"] = to_object_id(quiz.lesson)
    quiz_dict["createdAt"] = now
    quiz_dict["updatedAt"] = now
    await db.quizzes.insert_one(quiz_dict)
    logger.info(f"Created quiz '{quiz.title}' for course {quiz.course}, current_user: {current_user.userId}")
    return {"message": "Quiz created successfully", "data": serialize(quiz_dict)}


@router.put("/admin/{quiz_id}")
async def update_quiz(
    quiz_id: str,
    update_data: UpdateQuiz,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    path_id(quiz_id_schema, quiz_id, "Invalid quiz ID")
    quiz = await load_quiz(db, quiz_id)
    course = await db.courses.find_one({"_id": quiz["course"]}, {"instructor": 1})
    if not course or str(course["instructor"]) != current_user.userId:
        raise HTTPException(status_code=403, detail="Forbidden")

    if update_data.questions is not None:
        check_answer_indices(update_data.questions)

    update_dict = update_data.changes()
    logger.info(f"Updating quiz {quiz_id} fields {list(update_dict)}, current_user: {current_user.userId}")
    update_dict["updatedAt"] = datetime.utcnow()
    await db.quizzes.update_one({"_id": quiz["_id"]}, {"$set": update_dict})
    quiz.update(update_dict)
    return {"message": "Quiz updated successfully", "data": serialize(quiz)}


@router.post("/{quiz_id}/submit", status_code=201)
async def submit_quiz(
    quiz_id: str,
    submission: SubmitQuiz,
    current_user: TokenPayload = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    path_id(quiz_id_schema, quiz_id, "Invalid quiz ID")
    if submission.quizId != quiz_id:
        raise HTTPException(status_code=400, detail="Quiz ID in body does not match URL parameter")

    quiz = await load_quiz(db, quiz_id)
    await verify_enrollment(
        db, current_user.userId, quiz["course"],
        "You must be enrolled in this course to submit quizzes",
    )
    if len(submission.answers) != len(quiz["questions"]):
        raise HTTPException(status_code=400, detail="Number of answers does not match number of questions")

    result = score_quiz(quiz["questions"], submission.answers, quiz.get("passingScore", 60))

    now = datetime.utcnow()
    attempt = {
        "quiz": quiz["_id"],
        "student": to_object_id(current_user.userId),
        "answers": [a.model_dump() for a in submission.answers],
        "score": result.percentage,
        "isPassed": result.isPassed,
        "startedAt": now,
        "completedAt": now,
    }
    await db.quiz_attempts.insert_one(attempt)
    logger.info(
        f"Quiz {quiz_id} submitted, score {result.percentage}%, passed={result.isPassed}, "
        f"current_user: {current_user.userId}"
    )
    return {
        "message": "Quiz submitted successfully",
        "data": {"attempt": serialize(attempt), **result.model_dump()},
    }
