import enum

from sqlalchemy import Column, Integer, String, Enum, Boolean
from database.db import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Base):
    __tablename__ = "users"  # 계정/프로필 (이름 표시용)

    id = Column(Integer, primary_key=True, index=True)                  # 사용자 고유 ID (PK)
    full_name = Column(String(100), nullable=False)                     # 표시 이름
    email = Column(String(100), unique=True)                            # 이메일
    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), nullable=False)
    is_active = Column(Boolean, default=True)                           # 계정 활성 여부
