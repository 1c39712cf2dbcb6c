"""
services/grade_improvement_service.py

점수 개선 신청(Đơn cải thiện điểm) 워크플로우.

    pending ──(관리자 승인)──▶ approved   (종료)
       └─────(관리자 반려)──▶ rejected   (종료)

- 관리자가 성적 보고 기간 안에 개선 신청 기간을 연다
- 학생은 열린 기간 동안 과목당 1건만 신청 (상태와 무관하게 중복 불가)
- 관리자가 1회 처리하면 더 이상 상태 변경 불가
- 승인 후 실제 점수 수정은 이 워크플로우 밖의 수동 작업
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.settings import settings
from dependencies.security import AuthContext, require_role
from models.detailed_grades import StudentDetailedGrade
from models.grade_improvement import GradeImprovementPeriod, GradeImprovementRequest
from models.grade_reporting_periods import GradeReportingPeriod
from models.students import Student
from models.subjects import Subject
from models.users import UserRole
from schemas.common import Ok, Result, make_meta
from schemas.grade_improvement import (
    ImprovementPeriodCreate,
    ImprovementPeriodOut,
    ImprovementRequestCreate,
    ImprovementRequestFilters,
    ImprovementRequestOut,
    ImprovementRequestPage,
    ImprovementSubjectOut,
    RequestStatus,
)
from services.exceptions import BusinessRuleViolation, NotFoundError, service_result
from services.notification_client import NotificationClient, notification_client
from utils.dates import local_now, to_utc_naive

logger = logging.getLogger(__name__)

RESOLVED_STATUSES = (RequestStatus.APPROVED.value, RequestStatus.REJECTED.value)


class GradeImprovementService:
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationClient] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.db = db
        self.notifier = notifier or notification_client
        self.clock = clock

    def _today(self) -> date:
        return self.clock().date()

    # ==========================================================
    # [1단계] 관리자 - 개선 신청 기간
    # ==========================================================

    @service_result("개선 신청 기간 생성")
    def create_improvement_period(self, auth: AuthContext, data: ImprovementPeriodCreate) -> Result:
        require_role(auth, UserRole.ADMIN)

        parent = self.db.get(GradeReportingPeriod, data.grade_reporting_period_id)
        if parent is None:
            raise NotFoundError("Grade reporting period not found")

        if data.start_date > data.end_date:
            raise BusinessRuleViolation("The improvement window must start on or before its end date")

        if data.end_date >= parent.end_date:
            raise BusinessRuleViolation("The improvement window must close before the reporting period closes")

        self._ensure_no_overlap(parent.id, data.start_date, data.end_date)

        period = GradeImprovementPeriod(
            name=data.name,
            grade_reporting_period_id=parent.id,
            start_date=data.start_date,
            end_date=data.end_date,
            is_active=True,
            created_by=auth.user_id,
        )
        self.db.add(period)
        self.db.commit()
        self.db.refresh(period)

        logger.info(f"개선 신청 기간 생성: id={period.id}, parent={parent.id}, {period.start_date}~{period.end_date}")
        return Ok(data=self._period_out(period), message="Grade improvement period created")

    @service_result("개선 신청 기간 목록 조회")
    def list_improvement_periods(self, auth: AuthContext) -> Result:
        require_role(auth, UserRole.ADMIN)
        periods = (
            self.db.query(GradeImprovementPeriod)
            .order_by(GradeImprovementPeriod.created_at.desc(), GradeImprovementPeriod.id.desc())
            .all()
        )
        return Ok(data=[self._period_out(p) for p in periods])

    @service_result("개선 신청 기간 상태 변경")
    def set_improvement_period_active(self, auth: AuthContext, period_id: int, is_active: bool) -> Result:
        require_role(auth, UserRole.ADMIN)

        period = self.db.get(GradeImprovementPeriod, period_id)
        if period is None:
            raise NotFoundError("Grade improvement period not found")

        # 다시 여는 경우에도 활성 기간끼리 겹치면 안 됨
        if is_active and not period.is_active:
            self._ensure_no_overlap(
                period.grade_reporting_period_id, period.start_date, period.end_date, exclude_id=period.id
            )

        period.is_active = is_active
        period.updated_at = to_utc_naive(self.clock())
        self.db.commit()
        self.db.refresh(period)

        logger.info(f"개선 신청 기간 {'열림' if is_active else '닫힘'}: id={period.id}")
        message = "Grade improvement period opened" if is_active else "Grade improvement period closed"
        return Ok(data=self._period_out(period), message=message)

    def _ensure_no_overlap(self, parent_id: int, start: date, end: date, exclude_id: Optional[int] = None):
        # [s1,e1] 와 [s2,e2] 는 s1 <= e2 and s2 <= e1 이면 겹침
        query = self.db.query(GradeImprovementPeriod.id).filter(
            GradeImprovementPeriod.grade_reporting_period_id == parent_id,
            GradeImprovementPeriod.is_active.is_(True),
            GradeImprovementPeriod.start_date <= end,
            GradeImprovementPeriod.end_date >= start,
        )
        if exclude_id is not None:
            query = query.filter(GradeImprovementPeriod.id != exclude_id)
        if query.first() is not None:
            raise BusinessRuleViolation("The improvement window overlaps another active improvement period")

    # ==========================================================
    # [2단계] 학생 - 신청
    # ==========================================================

    @service_result("열린 개선 신청 기간 조회")
    def list_open_improvement_periods(self, auth: AuthContext) -> Result:
        require_role(auth, UserRole.STUDENT)
        today = self._today()
        periods = (
            self._open_periods_query(today)
            .order_by(GradeImprovementPeriod.end_date.asc(), GradeImprovementPeriod.id.asc())
            .all()
        )
        return Ok(data=[self._period_out(p) for p in periods])

    @service_result("개선 신청서 제출")
    def file_improvement_request(self, auth: AuthContext, data: ImprovementRequestCreate) -> Result:
        require_role(auth, UserRole.STUDENT)

        period = (
            self._open_periods_query(self._today())
            .filter(GradeImprovementPeriod.id == data.improvement_period_id)
            .first()
        )
        if period is None:
            raise BusinessRuleViolation("The improvement window is not active or has expired")

        if self.db.get(Student, auth.user_id) is None:
            raise NotFoundError("Student record not found")

        if self.db.get(Subject, data.subject_id) is None:
            raise NotFoundError("Subject not found")

        if self._find_request(period.id, auth.user_id, data.subject_id) is not None:
            raise _duplicate_request()

        request = GradeImprovementRequest(
            improvement_period_id=period.id,
            student_id=auth.user_id,
            subject_id=data.subject_id,
            request_reason=data.request_reason,
            status=RequestStatus.PENDING.value,
        )
        self.db.add(request)
        try:
            self.db.commit()
        except IntegrityError:
            # 사전 검사를 동시에 통과한 두 번째 신청은 DB 유일 제약에서 걸림
            # 그 외 제약 위반(FK 등)은 그대로 올려 STORAGE_ERROR 로 처리
            self.db.rollback()
            if self._find_request(period.id, auth.user_id, data.subject_id) is not None:
                raise _duplicate_request()
            raise
        self.db.refresh(request)

        logger.info(
            f"개선 신청서 접수: id={request.id}, period={period.id}, student={auth.user_id}, subject={data.subject_id}"
        )
        return Ok(data=self._request_out(request), message="Grade improvement request submitted")

    @service_result("내 개선 신청서 조회")
    def list_my_improvement_requests(self, auth: AuthContext) -> Result:
        require_role(auth, UserRole.STUDENT)
        requests = (
            self.db.query(GradeImprovementRequest)
            .filter(GradeImprovementRequest.student_id == auth.user_id)
            .order_by(GradeImprovementRequest.created_at.desc(), GradeImprovementRequest.id.desc())
            .all()
        )
        return Ok(data=[self._request_out(r) for r in requests])

    @service_result("신청 가능 과목 조회")
    def list_my_improvement_subjects(self, auth: AuthContext) -> Result:
        """현재 소속 반에서 점수가 입력된 과목만 (신청서 과목 선택용)"""
        require_role(auth, UserRole.STUDENT)

        student = self.db.get(Student, auth.user_id)
        if student is None:
            raise NotFoundError("Student record not found")

        subjects = (
            self.db.query(Subject)
            .join(StudentDetailedGrade, StudentDetailedGrade.subject_id == Subject.id)
            .filter(
                StudentDetailedGrade.student_id == student.id,
                StudentDetailedGrade.class_id == student.class_id,
            )
            .distinct()
            .order_by(Subject.name, Subject.id)
            .all()
        )
        return Ok(data=[ImprovementSubjectOut.model_validate(s) for s in subjects])

    def _open_periods_query(self, today: date):
        return self.db.query(GradeImprovementPeriod).filter(
            GradeImprovementPeriod.is_active.is_(True),
            GradeImprovementPeriod.start_date <= today,
            GradeImprovementPeriod.end_date >= today,
        )

    def _find_request(self, period_id: int, student_id: int, subject_id: int):
        return (
            self.db.query(GradeImprovementRequest.id)
            .filter(
                GradeImprovementRequest.improvement_period_id == period_id,
                GradeImprovementRequest.student_id == student_id,
                GradeImprovementRequest.subject_id == subject_id,
            )
            .first()
        )

    # ==========================================================
    # [3단계] 관리자 - 신청서 조회/처리
    # ==========================================================

    @service_result("개선 신청서 목록 조회")
    def list_improvement_requests(self, auth: AuthContext, filters: ImprovementRequestFilters) -> Result:
        require_role(auth, UserRole.ADMIN)

        query = self.db.query(GradeImprovementRequest)
        if filters.status:
            query = query.filter(GradeImprovementRequest.status == filters.status.value)
        if filters.improvement_period_id:
            query = query.filter(GradeImprovementRequest.improvement_period_id == filters.improvement_period_id)
        if filters.subject_id:
            query = query.filter(GradeImprovementRequest.subject_id == filters.subject_id)

        total = query.count()
        offset = (filters.page - 1) * filters.limit
        requests = (
            query.order_by(GradeImprovementRequest.created_at.desc(), GradeImprovementRequest.id.desc())
            .offset(offset)
            .limit(filters.limit)
            .all()
        )
        return Ok(data=ImprovementRequestPage(
            requests=[self._request_out(r) for r in requests],
            meta=make_meta(total, filters.page, filters.limit),
        ))

    @service_result("개선 신청서 처리")
    def resolve_improvement_request(
        self,
        auth: AuthContext,
        request_id: int,
        status: str,
        admin_comment: Optional[str] = None,
    ) -> Result:
        require_role(auth, UserRole.ADMIN)

        status = getattr(status, "value", status)
        if status not in RESOLVED_STATUSES:
            raise BusinessRuleViolation("Status must be either approved or rejected")

        request = self.db.get(GradeImprovementRequest, request_id)
        if request is None:
            raise NotFoundError("Grade improvement request not found")
        if request.status != RequestStatus.PENDING.value:
            raise _already_resolved()

        comment = (admin_comment or "").strip() or None
        if status == RequestStatus.REJECTED.value and comment is None and settings.REQUIRE_REJECTION_COMMENT:
            raise BusinessRuleViolation("A comment is required when rejecting a request")

        # ✅ pending 일 때만 갱신 (동시 처리 시 한 쪽만 성공)
        updated = (
            self.db.query(GradeImprovementRequest)
            .filter(
                GradeImprovementRequest.id == request_id,
                GradeImprovementRequest.status == RequestStatus.PENDING.value,
            )
            .update(
                {
                    GradeImprovementRequest.status: status,
                    GradeImprovementRequest.admin_comment: comment,
                    GradeImprovementRequest.reviewed_by: auth.user_id,
                    GradeImprovementRequest.reviewed_at: to_utc_naive(self.clock()),
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise _already_resolved()
        self.db.commit()
        self.db.refresh(request)

        logger.info(f"개선 신청서 처리: id={request.id}, status={status}, reviewer={auth.user_id}")
        self._notify_resolution(request)

        message = "Grade improvement request approved" if status == RequestStatus.APPROVED.value \
            else "Grade improvement request rejected"
        return Ok(data=self._request_out(request), message=message)

    def _notify_resolution(self, request: GradeImprovementRequest):
        payload = {
            "request_id": request.id,
            "student_id": request.student_id,
            "subject_id": request.subject_id,
            "status": request.status,
            "admin_comment": request.admin_comment,
        }
        try:
            self.notifier.grade_improvement_resolved(payload)
        except (httpx.HTTPError, ValueError):
            # 알림 실패는 처리 결과에 영향 없음
            logger.exception(f"개선 신청 처리 알림 전송 실패: request_id={request.id}")

    # ==========================================================
    # [공통] 출력 변환
    # ==========================================================

    @staticmethod
    def _period_out(period: GradeImprovementPeriod) -> ImprovementPeriodOut:
        out = ImprovementPeriodOut.model_validate(period)
        out.grade_reporting_period_name = period.grade_reporting_period.name if period.grade_reporting_period else None
        out.created_by_name = period.created_by_user.full_name if period.created_by_user else None
        return out

    @staticmethod
    def _request_out(request: GradeImprovementRequest) -> ImprovementRequestOut:
        out = ImprovementRequestOut.model_validate(request)
        out.improvement_period_name = request.improvement_period.name if request.improvement_period else None
        out.student_name = request.student.student_name if request.student else None
        out.subject_name = request.subject.name if request.subject else None
        out.reviewed_by_name = request.reviewed_by_user.full_name if request.reviewed_by_user else None
        return out


def _duplicate_request() -> BusinessRuleViolation:
    return BusinessRuleViolation(
        "You have already filed an improvement request for this subject in this window",
        code="DUPLICATE_REQUEST",
    )


def _already_resolved() -> BusinessRuleViolation:
    return BusinessRuleViolation("This improvement request has already been resolved", code="ALREADY_RESOLVED")
