"""
services/grade_service.py

성분 점수 입력/정정 + 조회 화면용 평균 계산.

평균 공식은 화면마다 다름 (합치지 말 것):
- 상세 성적 화면 (get_student_subject_averages / get_student_grade_overview)
    → compute_subject_average  (thường xuyên×1 + giữa kỳ×2 + cuối kỳ×3)
- 담임 제출 화면 (get_homeroom_summary)
    → compute_midterm_final_average  ((giữa kỳ + cuối kỳ) / 2)
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from dependencies.security import AuthContext, require_role
from models.classes import Class
from models.detailed_grades import GradeCorrection, StudentDetailedGrade
from models.grade_reporting_periods import GradeReportingPeriod
from models.students import Student
from models.users import UserRole
from schemas.common import Ok, Result
from schemas.grades import (
    ComponentType,
    GradeComponentOut,
    GradeCorrectionOut,
    GradeCorrectionRequest,
    GradeEntryRequest,
    GradeOverviewOut,
    HomeroomStudentOut,
    HomeroomSubjectOut,
    StudentGradesOut,
    SubjectAverageOut,
)
from services.exceptions import AuthorizationError, BusinessRuleViolation, NotFoundError, service_result
from services.grade_calculator import (
    classify_average,
    compute_midterm_final_average,
    compute_subject_average,
    group_components_by_subject,
    summarize_averages,
)
from utils.dates import local_now, to_utc_naive

logger = logging.getLogger(__name__)


def _component_out(row: StudentDetailedGrade) -> GradeComponentOut:
    return GradeComponentOut(
        id=row.id,
        component_type=row.component_type,
        sequence=row.sequence,
        value=float(row.grade_value),
    )


class GradeService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = local_now):
        self.db = db
        self.clock = clock

    def _today(self) -> date:
        return self.clock().date()

    # ==========================================================
    # [1단계] 점수 입력 / 정정
    # ==========================================================

    @service_result("성분 점수 입력")
    def enter_component_grades(self, auth: AuthContext, data: GradeEntryRequest) -> Result:
        require_role(auth, UserRole.TEACHER, UserRole.ADMIN)

        period = self.db.get(GradeReportingPeriod, data.period_id)
        if period is None:
            raise NotFoundError("Grade reporting period not found")
        if self._today() > period.end_date:
            raise BusinessRuleViolation(
                "The reporting period is closed; grades can only be changed through a correction"
            )

        saved = {}
        for entry in data.entries:
            key = (entry.student_id, entry.subject_id, entry.component_type.value, entry.sequence)
            row = saved.get(key) or (
                self.db.query(StudentDetailedGrade)
                .filter(
                    StudentDetailedGrade.student_id == entry.student_id,
                    StudentDetailedGrade.subject_id == entry.subject_id,
                    StudentDetailedGrade.period_id == period.id,
                    StudentDetailedGrade.component_type == entry.component_type.value,
                    StudentDetailedGrade.sequence == entry.sequence,
                )
                .first()
            )
            if row is None:
                row = StudentDetailedGrade(
                    student_id=entry.student_id,
                    subject_id=entry.subject_id,
                    period_id=period.id,
                    class_id=data.class_id,
                    component_type=entry.component_type.value,
                    sequence=entry.sequence,
                )
                self.db.add(row)
            row.grade_value = Decimal(str(entry.value))
            row.entered_by = auth.user_id
            saved[key] = row

        self.db.commit()
        saved = list(saved.values())
        for row in saved:
            self.db.refresh(row)

        logger.info(f"성분 점수 {len(saved)}건 저장: period={period.id}, class={data.class_id}, by={auth.user_id}")
        return Ok(data=[_component_out(r) for r in saved], message=f"{len(saved)} grade(s) saved")

    @service_result("점수 정정")
    def correct_component_grade(self, auth: AuthContext, grade_id: int, data: GradeCorrectionRequest) -> Result:
        require_role(auth, UserRole.ADMIN)

        row = self.db.get(StudentDetailedGrade, grade_id)
        if row is None:
            raise NotFoundError("Grade not found")

        reason = data.reason.strip()
        if not reason:
            raise BusinessRuleViolation("A reason is required for a grade correction")

        new_value = Decimal(str(data.new_value))
        if row.grade_value == new_value:
            raise BusinessRuleViolation("The corrected value is the same as the current value")

        correction = GradeCorrection(
            grade_id=row.id,
            old_value=row.grade_value,
            new_value=new_value,
            reason=reason,
            corrected_by=auth.user_id,
            corrected_at=to_utc_naive(self.clock()),
        )
        row.grade_value = new_value
        self.db.add(correction)
        self.db.commit()
        self.db.refresh(correction)

        logger.info(
            f"점수 정정: grade={row.id}, {correction.old_value} → {correction.new_value}, by={auth.user_id}"
        )
        return Ok(data=GradeCorrectionOut(
            id=correction.id,
            grade_id=correction.grade_id,
            old_value=float(correction.old_value),
            new_value=float(correction.new_value),
            reason=correction.reason,
            corrected_by=correction.corrected_by,
            corrected_at=correction.corrected_at,
        ), message="Grade corrected")

    # ==========================================================
    # [2단계] 상세 성적 / 대시보드 (가중 평균)
    # ==========================================================

    def _check_student_access(self, auth: AuthContext, student_id: int) -> Student:
        require_role(auth, UserRole.ADMIN, UserRole.TEACHER, UserRole.STUDENT)
        if auth.role == UserRole.STUDENT and auth.user_id != student_id:
            raise AuthorizationError("Students may only view their own grades")

        student = self.db.get(Student, student_id)
        if student is None:
            raise NotFoundError("Student not found")
        return student

    def _subject_averages(self, student_id: int, period_id: int) -> list:
        rows = (
            self.db.query(StudentDetailedGrade)
            .filter(
                StudentDetailedGrade.student_id == student_id,
                StudentDetailedGrade.period_id == period_id,
            )
            .order_by(
                StudentDetailedGrade.subject_id,
                StudentDetailedGrade.component_type,
                StudentDetailedGrade.sequence,
            )
            .all()
        )

        subjects = []
        for subject_id, components in group_components_by_subject(rows).items():
            average = compute_subject_average(components)
            subjects.append(SubjectAverageOut(
                subject_id=subject_id,
                subject_name=components[0].subject.name if components[0].subject else "Unknown",
                components=[_component_out(c) for c in components],
                average=average,
                classification=classify_average(average),
            ))
        return subjects

    @service_result("학생 상세 성적 조회")
    def get_student_subject_averages(self, auth: AuthContext, student_id: int, period_id: int) -> Result:
        student = self._check_student_access(auth, student_id)
        return Ok(data=StudentGradesOut(
            student_id=student.id,
            student_name=student.student_name,
            period_id=period_id,
            subjects=self._subject_averages(student.id, period_id),
        ))

    @service_result("학생 성적 요약 조회")
    def get_student_grade_overview(self, auth: AuthContext, student_id: int, period_id: int) -> Result:
        student = self._check_student_access(auth, student_id)
        subjects = self._subject_averages(student.id, period_id)
        stats = summarize_averages(s.average for s in subjects)
        return Ok(data=GradeOverviewOut(
            student_id=student.id,
            period_id=period_id,
            total_subjects=len(subjects),
            **stats,
        ))

    # ==========================================================
    # [3단계] 담임 제출 화면 (giữa kỳ / cuối kỳ 단순 평균)
    # ==========================================================

    @service_result("담임 반 성적 조회")
    def get_homeroom_summary(self, auth: AuthContext, class_id: int, period_id: int) -> Result:
        require_role(auth, UserRole.ADMIN, UserRole.TEACHER)

        class_ = self.db.get(Class, class_id)
        if class_ is None:
            raise NotFoundError("Class not found")
        if auth.role == UserRole.TEACHER and class_.homeroom_teacher_id != auth.user_id:
            raise AuthorizationError("Only the homeroom teacher can view this class summary")

        students = (
            self.db.query(Student)
            .filter(Student.class_id == class_id)
            .order_by(Student.student_number)
            .all()
        )
        rows = (
            self.db.query(StudentDetailedGrade)
            .filter(
                StudentDetailedGrade.period_id == period_id,
                StudentDetailedGrade.student_id.in_([s.id for s in students]),
                StudentDetailedGrade.component_type.in_([ComponentType.MIDTERM.value, ComponentType.FINAL.value]),
            )
            .order_by(StudentDetailedGrade.subject_id)
            .all()
        ) if students else []

        result = []
        for student in students:
            subjects = []
            own_rows = [r for r in rows if r.student_id == student.id]
            for subject_id, components in group_components_by_subject(own_rows).items():
                midterm = next((c.grade_value for c in components if c.component_type == ComponentType.MIDTERM.value), None)
                final = next((c.grade_value for c in components if c.component_type == ComponentType.FINAL.value), None)
                subjects.append(HomeroomSubjectOut(
                    subject_id=subject_id,
                    subject_name=components[0].subject.name if components[0].subject else "Unknown",
                    midterm=float(midterm) if midterm is not None else None,
                    final=float(final) if final is not None else None,
                    average=compute_midterm_final_average(midterm, final),
                ))
            result.append(HomeroomStudentOut(
                student_id=student.id,
                student_number=student.student_number,
                student_name=student.student_name,
                subjects=subjects,
            ))
        return Ok(data=result)
