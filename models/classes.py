from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base

class Class(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)      # 학급 고유 ID (PK)
    name = Column(String(50), nullable=False)               # 학급명 (예: 10A1)
    grade = Column(Integer, nullable=False)                 # 학년 (예: 10, 11, 12)

    # ==========================================================
    # [관계 설정]
    # ==========================================================

    # ✅ 담임 교사 ID (FK)
    #    - users.id를 참조 (role = teacher)
    homeroom_teacher_id = Column(Integer, ForeignKey("users.id"))

    homeroom_teacher = relationship("User", foreign_keys=[homeroom_teacher_id])

    # ✅ 반 학생들 (1:N)
    students = relationship("Student", back_populates="class_")
