"""
타임존 유틸리티

한국 시간(KST) 기준 시간 처리를 위한 유틸리티 함수들.
포인트 원장의 시각 컬럼(expire_at, created_at)은 KST 기준 naive datetime으로 저장한다.
"""

from datetime import date, datetime, time, timedelta, timezone

# 한국 표준시 (KST = UTC+9)
KST = timezone(timedelta(hours=9))


def get_kst_now() -> datetime:
    """현재 KST 시간을 반환합니다."""
    return datetime.now(KST)


def get_kst_now_naive() -> datetime:
    """DB 저장용 tzinfo 없는 현재 KST 시간을 반환합니다."""
    return get_kst_now().replace(tzinfo=None)


def get_current_kst_date() -> date:
    """현재 KST 날짜를 반환합니다."""
    return get_kst_now().date()


def start_of_day(target: date) -> datetime:
    """해당 날짜의 00:00:00 (naive KST)"""
    return datetime.combine(target, time.min)


def end_of_day(target: date) -> datetime:
    """해당 날짜의 23:59:59.999999 (naive KST)"""
    return datetime.combine(target, time.max)


def months_between(start: date, end: date) -> int:
    """두 날짜 사이의 완전한 개월 수 (예: 1/31 ~ 2/28 은 0개월)"""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months
