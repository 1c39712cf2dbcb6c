"""
pytest 공용 fixture

- DB: 인메모리 SQLite (StaticPool) - 테스트마다 테이블 생성/삭제
- 시간: 고정 시계 (Asia/Ho_Chi_Minh 2026-01-05 09:00)
- 알림: 전송 내용을 기록만 하는 notifier

Usage:
    pytest tests/ -v
"""

import os

# ✅ config.settings 를 import 하기 전에 설정해야 함
os.environ["DB_URL_OVERRIDE"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ.pop("NOTIFY_API_BASE_URL", None)

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from config.settings import settings
from database.db import Base, SessionLocal, engine
from database.init_db import init_db
from dependencies.security import AuthContext
from models.classes import Class
from models.grade_reporting_periods import GradeReportingPeriod
from models.students import Student
from models.subjects import Subject
from models.users import User, UserRole

ADMIN_ID = 1
TEACHER_ID = 2
OTHER_TEACHER_ID = 3
STUDENT_ID = 10
OTHER_STUDENT_ID = 11
MATH_ID = 1
LITERATURE_ID = 2
CLASS_ID = 1
REPORTING_PERIOD_ID = 1


class FixedClock:
    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value

    def set(self, year, month, day, hour=9):
        self.value = datetime(year, month, day, hour, 0, tzinfo=ZoneInfo(settings.TIMEZONE))


class RecordingNotifier:
    def __init__(self, error: Exception | None = None):
        self.sent = []
        self.error = error

    def grade_improvement_resolved(self, payload: dict):
        if self.error is not None:
            raise self.error
        self.sent.append(payload)


@pytest.fixture
def db():
    init_db(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seed(db):
    db.add_all([
        User(id=ADMIN_ID, full_name="Nguyễn Văn Quản", role=UserRole.ADMIN),
        User(id=TEACHER_ID, full_name="Trần Thị Hoa", role=UserRole.TEACHER),
        User(id=OTHER_TEACHER_ID, full_name="Lê Văn Minh", role=UserRole.TEACHER),
        User(id=STUDENT_ID, full_name="Phạm Minh Anh", role=UserRole.STUDENT),
        User(id=OTHER_STUDENT_ID, full_name="Võ Thu Hà", role=UserRole.STUDENT),
    ])
    db.flush()
    db.add(Class(id=CLASS_ID, name="10A1", grade=10, homeroom_teacher_id=TEACHER_ID))
    db.flush()
    db.add_all([
        Student(id=STUDENT_ID, student_number="HS001", student_name="Phạm Minh Anh", class_id=CLASS_ID),
        Student(id=OTHER_STUDENT_ID, student_number="HS002", student_name="Võ Thu Hà", class_id=CLASS_ID),
        Subject(id=MATH_ID, code="TOAN", name="Toán"),
        Subject(id=LITERATURE_ID, code="VAN", name="Ngữ văn"),
        GradeReportingPeriod(
            id=REPORTING_PERIOD_ID,
            name="Học kỳ 1",
            start_date=date(2025, 12, 1),
            end_date=date(2026, 1, 20),
        ),
    ])
    db.commit()
    return db


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 1, 5, 9, 0, tzinfo=ZoneInfo(settings.TIMEZONE)))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def admin():
    return AuthContext(user_id=ADMIN_ID, role=UserRole.ADMIN)


@pytest.fixture
def teacher():
    return AuthContext(user_id=TEACHER_ID, role=UserRole.TEACHER)


@pytest.fixture
def student():
    return AuthContext(user_id=STUDENT_ID, role=UserRole.STUDENT)


def auth_headers(user_id: int, role: str) -> dict:
    return {
        "Authorization": f"Bearer {settings.GATEWAY_TOKEN}",
        "X-User-Id": str(user_id),
        "X-User-Role": role,
    }


@pytest.fixture
def client(seed, clock, notifier):
    from main import app
    from routers import grade_improvement, grades
    from services.grade_improvement_service import GradeImprovementService
    from services.grade_service import GradeService

    app.dependency_overrides[grade_improvement.get_service] = lambda: GradeImprovementService(
        seed, notifier=notifier, clock=clock
    )
    app.dependency_overrides[grades.get_service] = lambda: GradeService(seed, clock=clock)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
