"""
services/grade_calculator.py

베트남 교육부 방식 과목 평균(ĐTBmhk) 계산 - 순수 함수 모음.

    ĐTBmhk = (Σ thường xuyên + 2 × giữa kỳ + 3 × cuối kỳ) / (số bài thường xuyên + 2 + 3)

- 입력 범위(0~10) 검증은 스키마(schemas/grades.py)에서 끝난 상태로 가정
- 반올림은 소수 첫째 자리 half-up (7.25 → 7.3)
- DB/세션에 의존하지 않음
"""

from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

REGULAR = "regular"
MIDTERM = "midterm"
FINAL = "final"
SUMMARY = "summary"

COMPONENT_WEIGHTS = {REGULAR: 1, MIDTERM: 2, FINAL: 3}

# 등급 구간 (학부모 대시보드 기준)
EXCELLENT_MIN = Decimal("8")
GOOD_MIN = Decimal("6.5")
AVERAGE_MIN = Decimal("5")


def _to_decimal(value) -> Decimal:
    # float → str 경유로 2진 오차 제거 (7.25 가 7.2499... 로 바뀌지 않도록)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value, digits: int = 1) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(_to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _component_fields(component) -> tuple:
    """(component_type, value) 추출 - dict / pydantic / ORM 행 모두 허용"""
    if isinstance(component, dict):
        kind = component.get("component_type")
        value = component.get("value", component.get("grade_value"))
    else:
        kind = getattr(component, "component_type")
        value = getattr(component, "value", None)
        if value is None:
            value = getattr(component, "grade_value", None)
    kind = getattr(kind, "value", kind)
    # 과거 데이터의 "regular_1", "regular_2" 형식도 정기 점수로 취급
    if isinstance(kind, str) and kind.startswith(REGULAR):
        kind = REGULAR
    return kind, value


def compute_subject_average(components: Iterable[Any]) -> Optional[float]:
    """
    한 학생/과목/기간의 성분 점수 → 가중 평균.

    - summary 가 있으면 계산 없이 그대로 반환 (교사 입력 확정 점수)
    - regular 는 여러 개 모두 반영, None 값은 제외
    - midterm/final 이 여러 개면 마지막 값 사용
    - 반영할 점수가 하나도 없으면 None
    """
    regular: List[Decimal] = []
    midterm = None
    final = None
    summary = None

    for component in components:
        kind, value = _component_fields(component)
        if value is None:
            continue
        if kind == SUMMARY:
            summary = value
        elif kind == REGULAR:
            regular.append(_to_decimal(value))
        elif kind == MIDTERM:
            midterm = _to_decimal(value)
        elif kind == FINAL:
            final = _to_decimal(value)

    if summary is not None:
        return float(summary)

    total_weight = len(regular)
    total_score = sum(regular, Decimal(0))
    if midterm is not None:
        total_weight += COMPONENT_WEIGHTS[MIDTERM]
        total_score += COMPONENT_WEIGHTS[MIDTERM] * midterm
    if final is not None:
        total_weight += COMPONENT_WEIGHTS[FINAL]
        total_score += COMPONENT_WEIGHTS[FINAL] * final

    if total_weight == 0:
        return None
    return round_half_up(total_score / total_weight, 1)


def compute_midterm_final_average(midterm, final) -> Optional[float]:
    """
    담임 제출 화면용 단순 평균: (giữa kỳ + cuối kỳ) / 2.
    compute_subject_average 와 결과가 다름 - 두 화면이 각각 이 값을 사용하므로 합치지 말 것.
    """
    if midterm is None or final is None:
        return None
    return round_half_up((_to_decimal(midterm) + _to_decimal(final)) / 2, 1)


def classify_average(average) -> Optional[str]:
    if average is None:
        return None
    value = _to_decimal(average)
    if value >= EXCELLENT_MIN:
        return "excellent"
    if value >= GOOD_MIN:
        return "good"
    if value >= AVERAGE_MIN:
        return "average"
    return "below_average"


def summarize_averages(averages: Iterable[Optional[float]]) -> Dict[str, Any]:
    """과목 평균 목록 → 대시보드 통계 (None 은 미채점 과목으로 제외)"""
    values = [_to_decimal(a) for a in averages if a is not None]
    counts = {"excellent_count": 0, "good_count": 0, "average_count": 0, "below_average_count": 0}
    for value in values:
        counts[f"{classify_average(value)}_count"] += 1

    if not values:
        return {
            "graded_subjects": 0,
            "average": None,
            "highest": None,
            "lowest": None,
            **counts,
        }

    return {
        "graded_subjects": len(values),
        "average": round_half_up(sum(values, Decimal(0)) / len(values), 2),
        "highest": float(max(values)),
        "lowest": float(min(values)),
        **counts,
    }


def group_components_by_subject(rows: Iterable[Any]) -> "OrderedDict[int, list]":
    """점수 행들을 subject_id 별로 묶음 (입력 순서 유지)"""
    grouped: "OrderedDict[int, list]" = OrderedDict()
    for row in rows:
        subject_id = row["subject_id"] if isinstance(row, dict) else row.subject_id
        grouped.setdefault(subject_id, []).append(row)
    return grouped
