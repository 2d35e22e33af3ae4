"""
HTTP-level checks: authentication, role gates and error bodies.
"""
import pytest

from conftest import auth_headers


def test_root(client):
    assert client.get("/").status_code == 200


def test_requires_token(client):
    assert client.get("/students/dashboard").status_code == 401
    assert client.get("/consultations/questions").status_code == 401


def test_rejects_garbage_token(client):
    res = client.get("/dashboard", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_role_gates(client, make_user):
    student, mentor = make_user("student"), make_user("mentor")

    assert client.get("/mentors/dashboard", headers=auth_headers(student)).status_code == 403
    assert client.get("/students/dashboard", headers=auth_headers(mentor)).status_code == 403
    assert client.get("/students/dashboard", headers=auth_headers(student)).status_code == 200


def test_enroll_and_progress_flow(client, make_user, make_course):
    student = make_user("student")
    course = make_course(materials=2)
    headers = auth_headers(student)

    res = client.post(f"/students/courses/{course.id}/enroll", headers=headers)
    assert res.status_code == 200
    assert res.json()["enrollment"]["course_id"] == course.id

    res = client.post(f"/students/courses/{course.id}/enroll", headers=headers)
    assert res.status_code == 409
    assert res.json() == {"detail": "Already enrolled in this course", "reason": "already_enrolled"}

    materials = client.get(f"/students/courses/{course.id}/materials", headers=headers).json()["materials"]
    assert [m["is_completed"] for m in materials] == [False, False]

    for m in materials:
        res = client.put(
            f"/students/courses/{course.id}/materials/{m['id']}/progress",
            json={"completed": True},
            headers=headers,
        )
        assert res.status_code == 200
        assert res.json()["progress"]["completed"] is True

    detail = client.get(f"/students/courses/{course.id}", headers=headers).json()
    assert detail["is_enrolled"] is True
    assert detail["is_completed"] is True
    assert detail["completed_materials"] == 2

    dashboard = client.get("/students/dashboard", headers=headers).json()
    assert dashboard["enrolled_courses"] == 1
    assert dashboard["completed_courses"] == 1


def test_enroll_empty_course(client, make_user, make_course):
    course = make_course(materials=0)
    res = client.post(f"/students/courses/{course.id}/enroll", headers=auth_headers(make_user("student")))

    assert res.status_code == 400
    assert res.json()["reason"] == "no_materials"


def test_enroll_unknown_course(client, make_user):
    res = client.post("/students/courses/999/enroll", headers=auth_headers(make_user("student")))
    assert res.status_code == 404


def test_material_with_progress_cannot_be_deleted(client, make_user, make_course):
    mentor, student = make_user("mentor"), make_user("student")
    course = make_course(materials=1, mentors=[mentor])
    material_id = course.materials[0].id

    client.post(f"/students/courses/{course.id}/enroll", headers=auth_headers(student))

    res = client.delete(f"/mentors/courses/{course.id}/materials/{material_id}", headers=auth_headers(mentor))
    assert res.status_code == 403
    assert res.json()["detail"] == "Cannot delete material with student progress"


def test_unassigned_mentor_gets_not_found(client, make_user, make_course):
    course = make_course(materials=0)
    res = client.post(
        f"/mentors/courses/{course.id}/materials",
        json={"title": "Intro", "content": "..."},
        headers=auth_headers(make_user("mentor")),
    )
    assert res.status_code == 404


@pytest.mark.parametrize("prefix", ["/consultations", "/forum"])
def test_qa_flow(client, make_user, prefix):
    owner, other, mentor = make_user("student"), make_user("student"), make_user("mentor")

    res = client.post(
        f"{prefix}/questions",
        json={"title": "Decorators", "message": "How do decorators wrap functions?"},
        headers=auth_headers(owner),
    )
    assert res.status_code == 200
    question_id = res.json()["question"]["id"]

    # students cannot answer
    res = client.post(
        f"{prefix}/answers", json={"question_id": question_id, "message": "me"}, headers=auth_headers(owner)
    )
    assert res.status_code == 403

    res = client.post(
        f"{prefix}/answers",
        json={"question_id": question_id, "message": "A decorator wraps a function"},
        headers=auth_headers(mentor),
    )
    assert res.status_code == 200
    answer = res.json()["answer"]
    assert answer["owner_id"] == mentor.id

    assert client.get(f"{prefix}/answers/{answer['id']}", headers=auth_headers(owner)).status_code == 200
    assert client.get(f"{prefix}/answers/{answer['id']}", headers=auth_headers(other)).status_code == 403

    listing = client.get(f"{prefix}/questions", headers=auth_headers(other)).json()
    assert listing["questions"] == []
    assert listing["pagination"]["total"] == 0

    res = client.get(f"{prefix}/answers/search", params={"q": "decorator"}, headers=auth_headers(mentor))
    assert res.status_code == 200
    body = res.json()
    assert body["search_metadata"]["total_results"] == 1
    assert 0.0 <= body["answers"][0]["relevance_score"] <= 1.0

    res = client.get(f"{prefix}/answers/search", headers=auth_headers(mentor))
    assert res.status_code == 400
    assert res.json()["reason"] == "missing_query"

    res = client.put(
        f"{prefix}/questions/{question_id}", json={"title": "mine"}, headers=auth_headers(other)
    )
    assert res.status_code == 403

    assert client.delete(f"{prefix}/questions/{question_id}", headers=auth_headers(owner)).status_code == 200
    assert client.get(f"{prefix}/questions/{question_id}", headers=auth_headers(mentor)).status_code == 404


def test_statistics_are_staff_only(client, make_user):
    assert client.get("/forum/questions/statistics", headers=auth_headers(make_user("student"))).status_code == 403

    res = client.get("/forum/questions/statistics", headers=auth_headers(make_user("mentor")))
    assert res.status_code == 200
    assert res.json() == {"total": 0, "this_month": 0, "this_year": 0}


def test_dashboard_dispatches_on_role(client, make_user, make_course):
    student, mentor, admin = make_user("student"), make_user("mentor"), make_user("admin")
    make_course(mentors=[mentor])

    body = client.get("/dashboard", headers=auth_headers(student)).json()
    assert body["role"] == "student"
    assert "enrolled_courses" in body["data"]

    body = client.get("/dashboard", headers=auth_headers(mentor)).json()
    assert body["role"] == "mentor"
    assert body["data"]["assigned_courses"] == 1

    body = client.get("/dashboard", headers=auth_headers(admin)).json()
    assert body["data"] == {"total_users": 3, "total_students": 1, "total_mentors": 1, "total_courses": 1}


def test_mentor_routes_refuse_admins(client, make_user, make_course):
    admin = make_user("admin")
    course = make_course(materials=1)

    assert client.get("/mentors/dashboard", headers=auth_headers(admin)).status_code == 403
    res = client.post(
        f"/mentors/courses/{course.id}/materials",
        json={"title": "Intro", "content": "..."},
        headers=auth_headers(admin),
    )
    assert res.status_code == 403


def test_mentor_course_details_and_students(client, make_user, make_course):
    mentor, student = make_user("mentor"), make_user("student")
    course = make_course(materials=2, mentors=[mentor])
    client.post(f"/students/courses/{course.id}/enroll", headers=auth_headers(student))

    res = client.get(f"/mentors/courses/{course.id}", headers=auth_headers(mentor))
    assert res.status_code == 200
    body = res.json()
    assert body["students_enrolled"] == 1
    assert body["materials_count"] == 2

    res = client.get(f"/mentors/courses/{course.id}/students", headers=auth_headers(mentor))
    assert res.status_code == 200
    assert [s["id"] for s in res.json()["students"]] == [student.id]

    other = make_user("mentor")
    assert client.get(f"/mentors/courses/{course.id}", headers=auth_headers(other)).status_code == 404
    assert client.get(f"/mentors/courses/{course.id}/students", headers=auth_headers(other)).status_code == 404


def test_question_search_route(client, make_user):
    student, mentor = make_user("student"), make_user("mentor")
    client.post(
        "/forum/questions",
        json={"title": "Generators", "message": "When should I yield?"},
        headers=auth_headers(student),
    )

    res = client.get("/forum/questions/search", headers=auth_headers(mentor))
    assert res.status_code == 400
    assert res.json()["reason"] == "missing_search_params"

    res = client.get("/forum/questions/search", params={"q": "yield"}, headers=auth_headers(mentor))
    assert res.status_code == 200
    body = res.json()
    assert body["search_metadata"]["total_results"] == 1
    assert body["questions"][0]["title"] == "Generators"

    res = client.get("/forum/questions/search", params={"has_answers": "false"}, headers=auth_headers(mentor))
    assert res.json()["pagination"]["total"] == 1
