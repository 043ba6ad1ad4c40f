"""
대시보드 통계 서비스
"""
import math
from collections import defaultdict

from config import Config
from services.references import extract_record_id


def round_half_up(value):
    """0.5는 올림 (파이썬 round()의 은행가 반올림과 다름)"""
    return int(math.floor(value + 0.5))


def count_enrollments_by_course(enrollments):
    """과정 ID별 수강신청 수 (신청이 없는 과정은 포함되지 않음)"""
    counts = defaultdict(int)
    for enrollment in enrollments:
        course_id = extract_record_id(enrollment.fields.get('kurs'))
        if course_id:
            counts[course_id] += 1
    return dict(counts)


def compute_stats(collections):
    """다섯 컬렉션으로부터 대시보드 통계 계산"""
    kurse = collections.get('kurse', [])
    anmeldungen = collections.get('anmeldungen', [])

    total_capacity = sum(k.fields.get('max_teilnehmer') or 0 for k in kurse)
    total_enrollments = len(anmeldungen)
    if total_capacity > 0:
        avg_utilization = round_half_up(total_enrollments / total_capacity * 100)
    else:
        avg_utilization = 0

    return {
        "kurse_count": len(kurse),
        "teilnehmer_count": len(collections.get('teilnehmer', [])),
        "dozenten_count": len(collections.get('dozenten', [])),
        "raeume_count": len(collections.get('raeume', [])),
        "total_capacity": total_capacity,
        "total_enrollments": total_enrollments,
        "avg_utilization": avg_utilization,
        "enrollments_by_course": count_enrollments_by_course(anmeldungen),
    }


def enrollment_badge(current, maximum):
    """과정별 정원 대비 신청 현황 배지"""
    percentage = (current / maximum) * 100 if maximum > 0 else 0
    return {
        "current": current,
        "max": maximum,
        "percentage": percentage,
        "bar_width": min(percentage, 100),
        "is_full": percentage >= Config.UTILIZATION_FULL_THRESHOLD,
    }
