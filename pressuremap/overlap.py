from __future__ import annotations
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

S = TypeVar("S")
Extent = Optional[Tuple[datetime, datetime]]


def session_extent(session) -> Extent:
    """session.time_extent() → (첫 프레임 시각, 마지막 프레임 시각) 또는 None."""
    return session.time_extent()


def overlaps(new_start: datetime, new_end: datetime, extent: Extent) -> bool:
    # 닫힌 구간 교차 검사, 프레임 없는 세션은 겹치지 않음
    if extent is None:
        return False
    existing_start, existing_end = extent
    return new_start <= existing_end and new_end >= existing_start


def find_overlapping(
    new_start: datetime,
    new_end: datetime,
    sessions: Iterable[S],
    extent: Callable[[S], Extent] = session_extent,
) -> List[S]:
    """
    새 배치 [new_start, new_end] 와 시간이 겹치는 기존 세션 목록.

    반환된 세션은 호출측에서 전부 삭제한 뒤 새 세션을 넣는다 (last-write-wins,
    프레임 병합 없음).
    """
    if new_end < new_start:
        new_start, new_end = new_end, new_start
    return [s for s in sessions if overlaps(new_start, new_end, extent(s))]


__all__ = ["overlaps", "find_overlapping", "session_extent"]
