# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Fuzzy ranking of events against a free-text query.

Each searchable field is scored and the best score wins; events that match
nothing are dropped. Higher rank first, and the incoming order (already the
list order) breaks ties.
"""

from __future__ import annotations

import re
from enum import IntEnum
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from eventdesk.store.events import EventRecord

SEARCH_FIELDS = ("title", "description", "location", "organizer")

_WORD_SPLIT = re.compile(r"[\s\-_]+")


class Rank(IntEnum):
    NO_MATCH = 0
    MATCHES = 1
    ACRONYM = 2
    CONTAINS = 3
    WORD_STARTS_WITH = 4
    STARTS_WITH = 5
    EQUAL = 6
    CASE_SENSITIVE_EQUAL = 7


def _acronym(text: str) -> str:
    return "".join(w[0] for w in _WORD_SPLIT.split(text) if w)


def _subsequence(text: str, query: str) -> bool:
    it = iter(text)
    return all(ch in it for ch in query)


def rank_text(text: Optional[str], query: str) -> Rank:
    if not text or not query:
        return Rank.NO_MATCH
    if text == query:
        return Rank.CASE_SENSITIVE_EQUAL
    t = text.casefold()
    q = query.casefold()
    if t == q:
        return Rank.EQUAL
    if t.startswith(q):
        return Rank.STARTS_WITH
    if any(w.startswith(q) for w in _WORD_SPLIT.split(t)):
        return Rank.WORD_STARTS_WITH
    if q in t:
        return Rank.CONTAINS
    if len(q) > 1 and q in _acronym(t):
        return Rank.ACRONYM
    if _subsequence(t, q):
        return Rank.MATCHES
    return Rank.NO_MATCH


def rank_event(event: "EventRecord", query: str) -> Rank:
    return max(rank_text(getattr(event, f), query) for f in SEARCH_FIELDS)


def rank_events(events: Iterable["EventRecord"], query: str) -> List["EventRecord"]:
    scored = [(rank_event(e, query), e) for e in events]
    hits = [(r, e) for r, e in scored if r > Rank.NO_MATCH]
    hits.sort(key=lambda pair: pair[0], reverse=True)
    return [e for _, e in hits]
