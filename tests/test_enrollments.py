from database import get_db, init_db
from main import app

from conftest import bearer, run


def test_student_enrolls_in_published_course(client, db, student, admin, make_course):
    course = make_course(admin, title="Open Course")
    response = client.post("/api/enrollments", headers=bearer(student), json={"courseId": str(course["_id"])})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Successfully enrolled in course"
    assert body["data"]["status"] == "enrolled"
    assert body["data"]["course"]["title"] == "Open Course"

    again = client.post("/api/enrollments", headers=bearer(student), json={"courseId": str(course["_id"])})
    assert again.status_code == 409
    assert again.json() == {"error": "You are already enrolled in this course"}
    assert run(db.enrollments.count_documents({})) == 1


def test_enrollment_rejections(client, student, admin, make_course):
    draft = make_course(admin, published=False)
    headers = bearer(student)

    response = client.post("/api/enrollments", headers=headers, json={"courseId": str(draft["_id"])})
    assert response.status_code == 403
    assert response.json()["error"] == "Course is not available for enrollment"

    missing = client.post("/api/enrollments", headers=headers, json={"courseId": "507f1f77bcf86cd799439011"})
    assert missing.status_code == 404

    invalid = client.post("/api/enrollments", headers=headers, json={"courseId": "abc"})
    assert invalid.status_code == 400
    assert invalid.json()["details"] == "courseId: Invalid course ID"

    as_admin = client.post("/api/enrollments", headers=bearer(admin), json={"courseId": str(draft["_id"])})
    assert as_admin.status_code == 403


def test_student_lists_own_enrollments(client, student, make_user, admin, make_course, enroll):
    other_student = make_user(name="Other", email="other@example.com")
    first = make_course(admin, title="First")
    second = make_course(admin, title="Second")
    enroll(student, first)
    enroll(student, second, status="completed")
    enroll(other_student, first)

    mine = client.get("/api/enrollments", headers=bearer(student)).json()["data"]
    assert sorted(e["course"]["title"] for e in mine) == ["First", "Second"]

    completed = client.get("/api/enrollments", params={"status": "completed"}, headers=bearer(student)).json()
    assert [e["course"]["title"] for e in completed["data"]] == ["Second"]

    assert client.get("/api/enrollments", params={"status": "paused"}, headers=bearer(student)).status_code == 400


def test_admin_sees_only_own_course_enrollments(client, student, admin, make_user, make_course, enroll):
    other_admin = make_user(name="Other Admin", email="boss@example.com", role="admin")
    mine = make_course(admin, title="Mine")
    theirs = make_course(other_admin, title="Theirs")
    enroll(student, mine)
    enroll(student, theirs)

    listed = client.get("/api/enrollments/admin", headers=bearer(admin)).json()["data"]
    assert [e["course"]["title"] for e in listed] == ["Mine"]
    assert listed[0]["student"]["email"] == student["email"]

    foreign = client.get("/api/enrollments/admin", params={"course": str(theirs["_id"])}, headers=bearer(admin))
    assert foreign.status_code == 403
    assert foreign.json() == {"error": "Forbidden"}


def test_progress_requires_enrollment(client, student, admin, make_course):
    course = make_course(admin, lessons=1)
    payload = {"courseId": str(course["_id"]), "lessonId": str(course["lessons"][0]["_id"]), "isCompleted": True}
    response = client.post("/api/progress", headers=bearer(student), json=payload)
    assert response.status_code == 403
    assert response.json()["error"] == "You must be enrolled in this course to track progress"


def test_progress_accumulates_time_and_keeps_first_completion(client, student, admin, make_course, enroll):
    course = make_course(admin, lessons=3)
    enroll(student, course)
    lesson_id = str(course["lessons"][0]["_id"])
    payload = {"courseId": str(course["_id"]), "lessonId": lesson_id, "timeSpent": 5}
    headers = bearer(student)

    first = client.post("/api/progress", headers=headers, json=payload).json()["data"]
    assert first["isCompleted"] is False
    assert "completedAt" not in first

    completed = client.post("/api/progress", headers=headers, json={**payload, "isCompleted": True}).json()["data"]
    assert completed["timeSpent"] == 10
    assert completed["completedAt"]

    again = client.post("/api/progress", headers=headers, json={**payload, "isCompleted": True}).json()["data"]
    assert again["timeSpent"] == 15
    assert again["completedAt"] == completed["completedAt"]

    summary = client.get("/api/progress", params={"courseId": str(course["_id"])}, headers=headers).json()
    assert len(summary["data"]) == 1
    assert summary["courseProgress"] == {
        "courseId": str(course["_id"]),
        "completedLessons": 1,
        "totalLessons": 3,
        "percentage": 33,
    }


def test_progress_lesson_must_belong_to_course(client, student, admin, make_course, enroll):
    course = make_course(admin, lessons=1)
    elsewhere = make_course(admin, title="Elsewhere", lessons=1)
    enroll(student, course)
    payload = {"courseId": str(course["_id"]), "lessonId": str(elsewhere["lessons"][0]["_id"])}

    response = client.post("/api/progress", headers=bearer(student), json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Lesson does not belong to this course"

    payload["timeSpent"] = -3
    assert client.post("/api/progress", headers=bearer(student), json=payload).status_code == 400


def test_progress_without_course_filter_has_no_summary(client, student):
    body = client.get("/api/progress", headers=bearer(student)).json()
    assert body == {"data": []}


class StaleEnrollments:
    """Enrollments collection whose lookups miss, as when a concurrent request inserts first."""

    def __init__(self, collection):
        self.collection = collection

    async def find_one(self, *args, **kwargs):
        return None

    def __getattr__(self, name):
        return getattr(self.collection, name)


class RacingDatabase:
    def __init__(self, db):
        self.db = db
        self.enrollments = StaleEnrollments(db.enrollments)

    def __getattr__(self, name):
        return getattr(self.db, name)


def test_concurrent_duplicate_enrollment_is_a_conflict(client, db, student, admin, make_course, enroll):
    run(init_db(db))
    course = make_course(admin)
    batch = {"course": course["_id"], "name": "Cohort", "maxStudents": 5, "currentStudents": 0, "status": "ongoing"}
    run(db.batches.insert_one(batch))
    enroll(student, course)

    async def racing_db():
        return RacingDatabase(db)

    app.dependency_overrides[get_db] = racing_db
    response = client.post(
        "/api/enrollments", headers=bearer(student),
        json={"courseId": str(course["_id"]), "batchId": str(batch["_id"])},
    )
    assert response.status_code == 409
    assert response.json() == {"error": "You are already enrolled in this course"}
    assert run(db.enrollments.count_documents({})) == 1
    # the seat taken before the insert failed is handed back
    assert run(db.batches.find_one({"_id": batch["_id"]}))["currentStudents"] == 0
