"""Pagination result container."""

from dataclasses import dataclass, field

from tokenprism.core.models.token import TokenRecord


@dataclass(frozen=True)
class PageResult:
    """One page of the volume ranking."""

    records: list[TokenRecord] = field(default_factory=list)
    next_cursor: str | None = None
    count: int = 0
