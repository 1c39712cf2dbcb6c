from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # 학생 기본 정보 테이블

    # ✅ 학생 ID = users.id (학생 계정과 1:1)
    id = Column(Integer, ForeignKey("users.id"), primary_key=True, index=True)
    student_number = Column(String(20), unique=True, nullable=False)   # 학번 (Mã học sinh)
    student_name = Column(String(100), nullable=False)                 # 학생 이름
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)  # 소속 반 ID
    gender = Column(String(10))                                        # 성별

    class_ = relationship("Class", back_populates="students")
