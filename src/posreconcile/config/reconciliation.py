"""Defaults for reconciliation passes."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int

DEFAULT_PAGE_SIZE = 500
DEFAULT_SAMPLE_SIZE = 3


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    concurrent_loads: bool = True
    sample_size: int = DEFAULT_SAMPLE_SIZE

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.sample_size < 0:
            raise ValueError(f"sample_size must be >= 0, got {self.sample_size}")


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        page_size=env_int("POSRECONCILE_PAGE_SIZE", default=DEFAULT_PAGE_SIZE, minimum=1),
        concurrent_loads=env_bool("POSRECONCILE_CONCURRENT_LOADS", default=True),
        sample_size=env_int("POSRECONCILE_SAMPLE_SIZE", default=DEFAULT_SAMPLE_SIZE, minimum=0),
    )
