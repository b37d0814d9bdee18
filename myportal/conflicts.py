"""
Conflict detection.

Given the sessions of a study timetable, detect overlaps on the same weekday.
Overlap rule:
    start < other_end AND end > other_start
"""

from __future__ import annotations

from myportal.model import ClassSession
from myportal.timetable import time_to_minutes


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def find_conflicts(sessions: list[ClassSession]) -> list[tuple[ClassSession, ClassSession]]:
    """
    Find overlapping session pairs (A,B), each pair appears once (i<j).
    Overlap only if same day AND time intervals overlap.
    """
    conflicts: list[tuple[ClassSession, ClassSession]] = []

    parsed: list[tuple[str, int, int, ClassSession]] = []
    for session in sessions:
        day = session.day.strip()
        if not day:
            continue
        try:
            start = time_to_minutes(session.start)
            end = time_to_minutes(session.end)
        except ValueError:
            continue
        # end <= start is malformed, skip it
        if end <= start:
            continue
        parsed.append((day, start, end, session))

    # O(n^2) is fine for one student's week
    for i in range(len(parsed)):
        d1, s1, e1, ses1 = parsed[i]
        for j in range(i + 1, len(parsed)):
            d2, s2, e2, ses2 = parsed[j]
            if d1 != d2:
                continue
            if _overlaps(s1, e1, s2, e2):
                conflicts.append((ses1, ses2))

    return conflicts
