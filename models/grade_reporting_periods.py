from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime
from database.db import Base

class GradeReportingPeriod(Base):
    __tablename__ = "grade_reporting_periods"  # 성적 보고 기간 (Kỳ báo cáo điểm)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)                 # 예: "Học kỳ 1 - Giữa kỳ"
    start_date = Column(Date, nullable=False)                  # 시작일
    end_date = Column(Date, nullable=False)                    # 종료일 (이후 점수 입력 잠금)
    created_at = Column(DateTime, default=datetime.utcnow)
