"""
database/init_db.py

- 모든 ORM 모델 모듈을 한 번에 import 해서 relationship 문자열 참조가 해석되도록 함
- 개발/테스트 환경에서 테이블 생성(create_all) 용도
  (운영 DB 스키마는 별도 마이그레이션으로 관리)
"""

import logging

from database.db import Base, engine

logger = logging.getLogger(__name__)


def import_models():
    # ✅ import 자체가 목적 (Base.metadata 등록)
    from models import users, classes, students, subjects  # noqa: F401
    from models import grade_reporting_periods, detailed_grades, grade_improvement  # noqa: F401


def init_db(bind=None):
    import_models()
    Base.metadata.create_all(bind=bind or engine)
    logger.info("DB 테이블 생성/확인 완료")
