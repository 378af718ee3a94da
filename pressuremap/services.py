"""
세션/프레임 저장소 작업. 뷰는 여기만 호출한다.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import List, Optional, Sequence

from django.db import DatabaseError, transaction
from django.db.models import Max, Min

from .exceptions import InvalidComment, StorageError
from .models import Comment, PressureFrame, PressureMap
from .overlap import find_overlapping

logger = logging.getLogger(__name__)


def sessions_for_day(patient, day: date) -> List[PressureMap]:
    """해당 날짜 세션 + 프레임 시각 범위(extent_start/extent_end)."""
    return list(
        PressureMap.objects.filter(patient=patient, day=day)
        .annotate(extent_start=Min("frames__timestamp"), extent_end=Max("frames__timestamp"))
        .order_by("id")
    )


def frames_for_day(patient, day: date) -> List[PressureFrame]:
    return list(
        PressureFrame.objects.filter(pressure_map__patient=patient, pressure_map__day=day)
        .order_by("timestamp", "id")
    )


def patient_days(patient) -> List[str]:
    days = (
        PressureMap.objects.filter(patient=patient)
        .order_by("-day")
        .values_list("day", flat=True)
        .distinct()
    )
    return [d.isoformat() for d in days]


def store_session(patient, day: date, samples: Sequence) -> PressureMap:
    """
    새 배치를 세션으로 저장.
      1) 같은 날 기존 세션 중 시간이 겹치는 것 삭제 (프레임 cascade)
      2) 새 세션 + 프레임 insert

    1) 과 2) 는 한 트랜잭션이 아니다. 2) 가 실패해도 1) 에서 지운 세션은
    복구하지 않고 StorageError 를 올린다.
    """
    if not samples:
        raise ValueError("store_session requires at least one frame")

    new_start = min(s.timestamp for s in samples)
    new_end = max(s.timestamp for s in samples)

    try:
        existing = sessions_for_day(patient, day)
        overlapping = find_overlapping(new_start, new_end, existing)
        removed_ids = [s.pk for s in overlapping]
        for session in overlapping:
            session.delete()
        if removed_ids:
            logger.info("[store] removed %d overlapping session(s) patient=%s day=%s ids=%s",
                        len(removed_ids), patient.pk, day, removed_ids)

        with transaction.atomic():
            pm = PressureMap.objects.create(patient=patient, day=day)
            PressureFrame.objects.bulk_create(
                [PressureFrame.from_sample(pm, s) for s in samples], batch_size=500
            )
    except DatabaseError as e:
        logger.exception("[store] database error patient=%s day=%s", patient.pk, day)
        raise StorageError("Database error occurred while saving the data.") from e

    logger.info("[store] saved map=%s frames=%d patient=%s day=%s (%s ~ %s)",
                pm.pk, len(samples), patient.pk, day, new_start.isoformat(), new_end.isoformat())
    return pm


def append_live_frame(patient, day: date, sample) -> PressureFrame:
    """
    디바이스가 push 한 프레임 1장.
    그날 마지막 세션의 마지막 프레임보다 늦으면 그 세션에 이어 붙이고,
    아니면 새 세션을 연다 (세션 내 시각 단조 증가 유지).
    """
    try:
        latest: Optional[PressureMap] = (
            PressureMap.objects.filter(patient=patient, day=day).order_by("-id").first()
        )
        last_ts = None
        if latest is not None:
            last_ts = latest.frames.aggregate(end=Max("timestamp"))["end"]
        if latest is None or (last_ts is not None and sample.timestamp < last_ts):
            latest = PressureMap.objects.create(patient=patient, day=day)
            logger.info("[live] opened map=%s patient=%s day=%s", latest.pk, patient.pk, day)
        frame = PressureFrame.from_sample(latest, sample)
        frame.save()
        return frame
    except DatabaseError as e:
        logger.exception("[live] database error patient=%s", patient.pk)
        raise StorageError("Database error occurred while saving the frame.") from e


def delete_session(patient, session_id: int) -> Optional[int]:
    """본인 세션만 삭제. 삭제한 프레임 수, 없으면 None."""
    pm = PressureMap.objects.filter(pk=session_id, patient=patient).first()
    if pm is None:
        return None
    frame_count = pm.frames.count()
    pm.delete()
    logger.info("[delete] map=%s patient=%s frames=%d", session_id, patient.pk, frame_count)
    return frame_count


def latest_frame(patient) -> Optional[PressureFrame]:
    return (
        PressureFrame.objects.filter(pressure_map__patient=patient)
        .order_by("-timestamp", "-id")
        .first()
    )


def add_comment(user, pressure_map: PressureMap, text: str, parent: Optional[Comment] = None) -> Comment:
    """세션에 댓글 1개. 답글은 같은 세션의 댓글에만."""
    text = (text or "").strip()
    if not text:
        raise InvalidComment("Comment text is required.")
    if parent is not None and parent.pressure_map_id != pressure_map.pk:
        raise InvalidComment("Parent comment belongs to a different pressure map.")
    try:
        comment = Comment.objects.create(pressure_map=pressure_map, user=user, parent=parent, text=text)
    except DatabaseError as e:
        logger.exception("[comment] database error map=%s", pressure_map.pk)
        raise StorageError("Database error occurred while saving the comment.") from e
    logger.info("[comment] saved comment=%s map=%s user=%s parent=%s",
                comment.pk, pressure_map.pk, user.pk, parent.pk if parent else None)
    return comment


def comments_for_day(patient, day: date) -> List[Comment]:
    """해당 날짜 세션들의 댓글, 최신순."""
    return list(
        Comment.objects.filter(pressure_map__patient=patient, pressure_map__day=day)
        .select_related("user")
        .order_by("-created_at", "-id")
    )


__all__ = [
    "sessions_for_day", "frames_for_day", "patient_days", "store_session",
    "append_live_frame", "delete_session", "latest_frame", "add_comment", "comments_for_day",
]
