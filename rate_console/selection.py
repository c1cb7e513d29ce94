from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from rate_console.models import CodeDisplay, EntityId, SelectionSnapshot
from rate_console.stores.base import RatePlanCodeStore

logger = logging.getLogger(__name__)

_STRAY_JSON_CHARS = re.compile(r'[\[\]"]')


def clean_code(code: Any) -> str:
    if not isinstance(code, str):
        return ""
    # Codes pasted from a JSON array arrive as '["API"' or '"ZP3"]'.
    return _STRAY_JSON_CHARS.sub("", code).strip().upper()


def parse_rate_plan_codes(value: Any) -> list[str]:
    """Read the stored column, which holds either a list or a comma-separated string."""
    if isinstance(value, list):
        raw = value
    elif isinstance(value, str):
        raw = value.split(",")
    else:
        return []
    return _dedupe(clean_code(code) for code in raw)


def clean_rate_plan_codes(codes: Iterable[Any], allowed: Iterable[str]) -> tuple[list[str], list[str]]:
    allowed_set = set(allowed)
    errors: list[str] = []
    cleaned: list[str] = []
    for code in codes:
        if not isinstance(code, str):
            errors.append(f"Invalid code type: {type(code).__name__}")
            continue
        value = clean_code(code)
        if not value:
            continue
        if value not in allowed_set:
            errors.append(f"Invalid rate plan code: {value}")
            continue
        cleaned.append(value)
    return _dedupe(cleaned), errors


class SelectionReconciler:
    """Baseline/working rate-plan-code sets for one open hotel panel.

    ``baseline`` is what the store last confirmed; ``working`` is the editable copy.
    Only a successful ``save`` moves the baseline.
    """

    def __init__(self, store: RatePlanCodeStore):
        self.store = store
        self.entity_id: EntityId | None = None
        self._baseline: list[str] = []
        self._working: list[str] = []

    def initialize(self, entity_id: EntityId, persisted_codes: Iterable[str]) -> None:
        self.entity_id = entity_id
        self._baseline = _dedupe(clean_code(code) for code in persisted_codes)
        self._working = list(self._baseline)

    @property
    def baseline(self) -> frozenset[str]:
        return frozenset(self._baseline)

    @property
    def working(self) -> frozenset[str]:
        return frozenset(self._working)

    @property
    def working_codes(self) -> list[str]:
        return list(self._working)

    @property
    def is_dirty(self) -> bool:
        return self.working != self.baseline

    def added(self) -> list[str]:
        return [code for code in self._working if code not in self._baseline]

    def removed(self) -> list[str]:
        return [code for code in self._baseline if code not in self._working]

    def toggle(self, code: str) -> None:
        value = clean_code(code)
        if not value:
            raise ValueError("rate plan code must be a non-empty string")
        if value in self._working:
            self._working = [item for item in self._working if item != value]
        else:
            self._working = [*self._working, value]

    def replace_all(self, codes: Iterable[str]) -> None:
        self._working = _dedupe(clean_code(code) for code in codes)

    async def save(self) -> list[str]:
        if self.entity_id is None:
            raise RuntimeError("selection has not been initialized")

        snapshot = list(self._working)
        if not self.is_dirty:
            return snapshot

        await self.store.write(self.entity_id, snapshot)
        logger.info(
            "rate_plan_codes_saved",
            extra={
                "entity": self.entity_id.as_dict(),
                "added": [code for code in snapshot if code not in self._baseline],
                "removed": [code for code in self._baseline if code not in snapshot],
            },
        )
        self._baseline = snapshot
        return snapshot

    def display(self, available_codes: Iterable[str] = ()) -> list[CodeDisplay]:
        codes = _dedupe([*available_codes, *self._baseline, *self._working])
        baseline = self.baseline
        working = self.working
        return [CodeDisplay(code=code, selected=code in working, persisted=code in baseline) for code in codes]

    def snapshot(self, available_codes: Iterable[str] = ()) -> SelectionSnapshot:
        entity = self.entity_id.as_dict() if self.entity_id else {}
        return SelectionSnapshot(
            sabre_id=entity.get("sabre_id"),
            paragon_id=entity.get("paragon_id"),
            baseline=list(self._baseline),
            working=list(self._working),
            added=self.added(),
            removed=self.removed(),
            dirty=self.is_dirty,
            codes=self.display(available_codes),
        )


def _dedupe(codes: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for code in codes:
        if code and code not in seen:
            seen.append(code)
    return seen
