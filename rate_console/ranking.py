from __future__ import annotations

from typing import Iterable, Protocol, TypeVar


class Priced(Protocol):
    amount_after_tax: float | None


RowT = TypeVar("RowT", bound=Priced)


def sort_by_price(rows: Iterable[RowT]) -> list[RowT]:
    """Cheapest first; rows without a price go last. Equal prices keep their input order."""
    return sorted(rows, key=_price_key)


def _price_key(row: Priced) -> float:
    return row.amount_after_tax if row.amount_after_tax is not None else float("inf")
