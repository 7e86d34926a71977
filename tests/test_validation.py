import pytest

from models.common import ObjectIdStr, validate
from models.course import CourseListQuery, CreateCourse, UpdateCourse, course_id_schema
from models.progress import CourseProgress, UpdateProgress
from models.quiz import CreateQuiz, SubmitQuiz, quiz_id_schema
from models.user import RegisterRequest

VALID_ID = "507f1f77bcf86cd799439011"


@pytest.mark.parametrize("value", [VALID_ID, "ABCDEFabcdef012345678901"])
def test_course_id_accepts_24_hex_chars(value):
    assert validate(course_id_schema, value).ok


@pytest.mark.parametrize("value", ["", "123", VALID_ID + "0", "507f1f77bcf86cd79943901z"])
def test_course_id_rejects_anything_else(value):
    result = validate(course_id_schema, value)
    assert not result.ok
    assert result.errors[0].message == "Invalid course ID"


def test_generic_object_id_message():
    assert validate(ObjectIdStr, "xyz").errors[0].message == "Invalid ID"


def test_quiz_id_reports_missing_before_format():
    assert validate(quiz_id_schema, "").errors[0].message == "Quiz ID is required"
    assert validate(quiz_id_schema, "nope").errors[0].message == "Invalid quiz ID format"
    assert validate(quiz_id_schema, VALID_ID).value == VALID_ID


def test_time_spent_defaults_to_zero():
    result = validate(UpdateProgress, {"courseId": VALID_ID, "lessonId": VALID_ID})
    assert result.ok
    assert result.value.timeSpent == 0
    assert result.value.isCompleted is False


def test_negative_time_spent_is_rejected():
    result = validate(UpdateProgress, {"courseId": VALID_ID, "lessonId": VALID_ID, "timeSpent": -1})
    assert not result.ok
    assert result.errors[0].path == "timeSpent"


def test_submit_quiz_requires_answers():
    assert not validate(SubmitQuiz, {"quizId": VALID_ID, "answers": []}).ok

    result = validate(SubmitQuiz, {
        "quizId": VALID_ID,
        "answers": [{"questionIndex": 0, "selectedAnswer": 2}, {"questionIndex": 1, "selectedAnswer": 0}],
    })
    assert result.ok
    assert len(result.value.answers) == 2


def test_submit_quiz_rejects_negative_indices():
    result = validate(SubmitQuiz, {"quizId": VALID_ID, "answers": [{"questionIndex": -1, "selectedAnswer": 0}]})
    assert not result.ok
    assert result.errors[0].path == "answers.0.questionIndex"


def test_failure_details_join_every_field_error():
    result = validate(RegisterRequest, {"name": "A", "email": "not-an-email", "password": "123"})
    assert not result.ok
    assert {e.path for e in result.errors} == {"name", "email", "password"}
    assert "email: Please provide a valid email address" in result.details


def test_register_normalizes_email_and_name():
    result = validate(RegisterRequest, {"name": "  Jo  ", "email": " Jo@Example.COM ", "password": "secret1"})
    assert result.value.name == "Jo"
    assert result.value.email == "jo@example.com"


def test_create_course_thumbnail_may_be_empty_but_not_garbage():
    base = {"title": "Course", "description": "Long enough text", "price": 0, "category": "x", "duration": 5}
    assert validate(CreateCourse, {**base, "thumbnail": ""}).ok
    assert validate(CreateCourse, {**base, "thumbnail": "https://cdn.example.com/a.png"}).ok
    result = validate(CreateCourse, {**base, "thumbnail": "not a url"})
    assert result.errors[0].message == "Invalid thumbnail URL"


def test_course_list_query_defaults_and_tags():
    query = validate(CourseListQuery, {"tags": "python, web"}).value
    assert query.page == 1
    assert query.limit == 12
    assert query.tags == ["python", "web"]
    assert not validate(CourseListQuery, {"limit": "51"}).ok


def test_create_quiz_needs_questions_with_enough_options():
    quiz = {"course": VALID_ID, "title": "Quiz one", "questions": []}
    assert not validate(CreateQuiz, quiz).ok
    quiz["questions"] = [{"question": "Q?", "options": ["only"], "correctAnswer": 0}]
    assert not validate(CreateQuiz, quiz).ok
    quiz["questions"][0]["options"].append("two")
    assert validate(CreateQuiz, quiz).value.passingScore == 60


@pytest.mark.parametrize("completed,total,expected", [(0, 0, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (4, 4, 100)])
def test_course_progress_percentage(completed, total, expected):
    assert CourseProgress.compute(VALID_ID, completed, total).percentage == expected


def test_body_validation_error_shape(client):
    response = client.post("/api/auth/register", json={"name": "Jo", "email": "bad", "password": "secret1"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert body["details"] == "email: Please provide a valid email address"


def test_update_bodies_may_omit_fields_but_not_null_them():
    partial = validate(UpdateCourse, {"price": 5})
    assert partial.ok
    assert partial.value.changes() == {"price": 5}

    assert validate(UpdateCourse, {}).value.changes() == {}

    nulled = validate(UpdateCourse, {"title": None})
    assert not nulled.ok
    assert nulled.details == "title: Field cannot be null"
