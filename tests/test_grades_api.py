"""
/v1/grades 테스트 - 점수 입력/정정, 상세 화면(가중 평균), 담임 화면(단순 평균)

Run with: pytest tests/test_grades_api.py -v
"""

import pytest

from models.detailed_grades import GradeCorrection
from tests.conftest import (
    ADMIN_ID,
    CLASS_ID,
    LITERATURE_ID,
    MATH_ID,
    OTHER_STUDENT_ID,
    OTHER_TEACHER_ID,
    REPORTING_PERIOD_ID,
    STUDENT_ID,
    TEACHER_ID,
    auth_headers,
)

ADMIN = auth_headers(ADMIN_ID, "admin")
TEACHER = auth_headers(TEACHER_ID, "teacher")
STUDENT = auth_headers(STUDENT_ID, "student")


def entry(student_id, subject_id, kind, value, sequence=1):
    return {
        "student_id": student_id,
        "subject_id": subject_id,
        "component_type": kind,
        "sequence": sequence,
        "value": value,
    }


def enter(client, entries, headers=TEACHER):
    return client.post(
        "/v1/grades/components",
        json={"period_id": REPORTING_PERIOD_ID, "class_id": CLASS_ID, "entries": entries},
        headers=headers,
    )


@pytest.fixture
def graded(client):
    resp = enter(client, [
        entry(STUDENT_ID, MATH_ID, "regular", 8, 1),
        entry(STUDENT_ID, MATH_ID, "regular", 7, 2),
        entry(STUDENT_ID, MATH_ID, "midterm", 9),
        entry(STUDENT_ID, MATH_ID, "final", 6),
        entry(STUDENT_ID, LITERATURE_ID, "midterm", 8),
        entry(STUDENT_ID, LITERATURE_ID, "final", 6),
        entry(OTHER_STUDENT_ID, MATH_ID, "summary", 9.5),
    ])
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


# =============================================================================
# 입력 / 정정
# =============================================================================

def test_enter_grades_upserts(client, graded):
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "final", 7)])
    assert resp.status_code == 200

    grades = client.get(f"/v1/grades/students/{STUDENT_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=ADMIN)
    math = next(s for s in grades.json()["data"]["subjects"] if s["subject_id"] == MATH_ID)
    finals = [c for c in math["components"] if c["component_type"] == "final"]
    assert len(finals) == 1
    assert finals[0]["value"] == 7.0


@pytest.mark.parametrize("value", [-0.5, 10.5])
def test_out_of_range_value_rejected(client, value):
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "regular", value)])
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize("value", [7.25, 9.05])
def test_more_than_one_decimal_rejected(client, value):
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "regular", value)])
    assert resp.status_code == 422
    assert "one decimal place" in resp.json()["error"]["message"]


def test_one_decimal_accepted(client):
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "regular", 7.5), entry(STUDENT_ID, MATH_ID, "final", 10)])
    assert resp.status_code == 200
    assert [g["value"] for g in resp.json()["data"]] == [7.5, 10.0]


def test_midterm_sequence_must_be_one(client):
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "midterm", 7, sequence=2)])
    assert resp.status_code == 422


def test_student_cannot_enter_grades(client):
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "regular", 10)], headers=STUDENT)
    assert resp.status_code == 403


def test_entry_rejected_after_period_closes(client, clock):
    clock.set(2026, 1, 21)
    resp = enter(client, [entry(STUDENT_ID, MATH_ID, "regular", 8)])
    assert resp.status_code == 400
    assert "correction" in resp.json()["error"]["message"]


def test_correction_writes_audit_row(client, graded, seed, clock):
    clock.set(2026, 2, 1)
    grade_id = next(g["id"] for g in graded if g["component_type"] == "final")

    resp = client.put(
        f"/v1/grades/components/{grade_id}/correction",
        json={"new_value": 7.5, "reason": "Chấm sót câu 3"},
        headers=ADMIN,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["old_value"] == 6.0
    assert data["new_value"] == 7.5
    assert data["corrected_by"] == ADMIN_ID

    audit = seed.query(GradeCorrection).filter(GradeCorrection.grade_id == grade_id).all()
    assert len(audit) == 1


def test_correction_requires_admin(client, graded):
    grade_id = graded[0]["id"]
    resp = client.put(
        f"/v1/grades/components/{grade_id}/correction",
        json={"new_value": 9, "reason": "x"},
        headers=TEACHER,
    )
    assert resp.status_code == 403


def test_correction_more_than_one_decimal_rejected(client, graded):
    resp = client.put(
        f"/v1/grades/components/{graded[0]['id']}/correction",
        json={"new_value": 7.25, "reason": "làm tròn"},
        headers=ADMIN,
    )
    assert resp.status_code == 422


def test_correction_same_value_rejected(client, graded):
    grade_id = graded[0]["id"]
    resp = client.put(
        f"/v1/grades/components/{grade_id}/correction",
        json={"new_value": graded[0]["value"], "reason": "không đổi"},
        headers=ADMIN,
    )
    assert resp.status_code == 400


# =============================================================================
# 상세 성적 화면 (가중 평균)
# =============================================================================

def test_detailed_view_uses_weighted_average(client, graded):
    resp = client.get(f"/v1/grades/students/{STUDENT_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=STUDENT)
    assert resp.status_code == 200
    subjects = {s["subject_id"]: s for s in resp.json()["data"]["subjects"]}

    assert subjects[MATH_ID]["average"] == 7.3                # 51 / 7
    assert subjects[MATH_ID]["classification"] == "good"
    assert subjects[LITERATURE_ID]["average"] == 6.8          # (16 + 18) / 5


def test_summary_grade_is_authoritative(client, graded):
    resp = client.get(f"/v1/grades/students/{OTHER_STUDENT_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=ADMIN)
    math = resp.json()["data"]["subjects"][0]
    assert math["average"] == 9.5
    assert math["classification"] == "excellent"


def test_student_cannot_read_other_student(client, graded):
    resp = client.get(
        f"/v1/grades/students/{OTHER_STUDENT_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=STUDENT
    )
    assert resp.status_code == 403


def test_unknown_student(client):
    resp = client.get("/v1/grades/students/999", params={"period_id": REPORTING_PERIOD_ID}, headers=ADMIN)
    assert resp.status_code == 404


def test_overview_statistics(client, graded):
    resp = client.get(
        f"/v1/grades/students/{STUDENT_ID}/overview", params={"period_id": REPORTING_PERIOD_ID}, headers=STUDENT
    )
    data = resp.json()["data"]
    assert data["total_subjects"] == 2
    assert data["graded_subjects"] == 2
    assert data["average"] == 7.05
    assert data["highest"] == 7.3
    assert data["lowest"] == 6.8
    assert data["good_count"] == 2


# =============================================================================
# 담임 제출 화면 (단순 평균)
# =============================================================================

def test_homeroom_view_uses_midterm_final_average(client, graded):
    resp = client.get(f"/v1/grades/homeroom/{CLASS_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=TEACHER)
    assert resp.status_code == 200
    students = {s["student_id"]: s for s in resp.json()["data"]}

    subjects = {s["subject_id"]: s for s in students[STUDENT_ID]["subjects"]}
    assert subjects[LITERATURE_ID]["average"] == 7.0          # (8 + 6) / 2
    assert subjects[MATH_ID]["average"] == 7.5                # (9 + 6) / 2

    # summary 만 있는 학생은 giữa kỳ/cuối kỳ 가 없어 표시할 과목 없음
    assert students[OTHER_STUDENT_ID]["subjects"] == []


def test_homeroom_view_only_for_homeroom_teacher(client, graded):
    resp = client.get(
        f"/v1/grades/homeroom/{CLASS_ID}",
        params={"period_id": REPORTING_PERIOD_ID},
        headers=auth_headers(OTHER_TEACHER_ID, "teacher"),
    )
    assert resp.status_code == 403

    resp = client.get(f"/v1/grades/homeroom/{CLASS_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=ADMIN)
    assert resp.status_code == 200


def test_homeroom_missing_final_gives_null_average(client):
    enter(client, [entry(STUDENT_ID, MATH_ID, "midterm", 8)])
    resp = client.get(f"/v1/grades/homeroom/{CLASS_ID}", params={"period_id": REPORTING_PERIOD_ID}, headers=TEACHER)
    student = next(s for s in resp.json()["data"] if s["student_id"] == STUDENT_ID)
    assert student["subjects"][0]["midterm"] == 8.0
    assert student["subjects"][0]["final"] is None
    assert student["subjects"][0]["average"] is None
