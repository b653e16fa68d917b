# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Length-aware page of read results."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of entities produced by ``Repository.paginate``.

    Attributes:
        items: Entities on this page.
        total: Number of matching entities across all pages.
        page: Current page number (1-based).
        per_page: Maximum entities per page.
    """

    items: list[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def has_more_pages(self) -> bool:
        return self.page < self.last_page

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def first_item(self) -> int | None:
        """1-based position of the first item on this page, or ``None`` if empty."""
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    def map(self, func: Callable[[T], U]) -> Page[U]:
        return Page(
            items=[func(item) for item in self.items],
            total=self.total,
            page=self.page,
            per_page=self.per_page,
        )
