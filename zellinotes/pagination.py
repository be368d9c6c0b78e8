from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Pagination:
    """Optional page request for the recipe listing.

    ``page`` is 1-based, ``sorting`` orders by creation time (1 ascending,
    -1 descending). A request either sets all three values or none of them.
    """

    page: Optional[int] = None
    items: Optional[int] = None
    sorting: Optional[int] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "Pagination":
        """Build a descriptor from query-string values.

        Raises :class:`ValueError` when a given value is not an integer.
        """

        def _int(name: str) -> Optional[int]:
            raw = args.get(name)
            if raw is None or raw == "":
                return None
            return int(raw)

        return cls(page=_int("page"), items=_int("items"), sorting=_int("sorting"))

    def is_fully_set(self) -> bool:
        return (
            self.page is not None
            and self.page > 0
            and self.items is not None
            and self.items > 0
            and self.sorting in (1, -1)
        )

    def is_fully_empty(self) -> bool:
        return self.page is None and self.items is None and self.sorting is None

    @property
    def skip(self) -> int:
        if not self.is_fully_set():
            raise ValueError("skip is only defined for a fully set pagination")
        return (self.page - 1) * self.items


__all__ = ["Pagination"]
