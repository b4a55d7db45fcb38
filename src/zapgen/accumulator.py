"""Accumulator registers: named running-sum ledgers for one render pass."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

Number = int | float


@dataclass(slots=True)
class Accumulator:
    """One named register.

    ``running_sums[i]`` is the sum of ``values[0..i]`` with ``None`` entries
    treated as a zero delta (the previous sum is carried forward).

    Example:
        >>> acc = Accumulator()
        >>> for v in (4, 8, None):
        ...     _ = acc.append(v)
        >>> acc.running_sums
        [4, 12, 12]
    """

    values: list[Number | None] = field(default_factory=list)
    running_sums: list[Number] = field(default_factory=list)
    current_sum: Number = 0

    def append(self, value: Number | None) -> Number:
        """Record ``value`` and return the new running sum."""
        new_sum = self.current_sum if value is None else self.current_sum + value
        self.values.append(value)
        self.running_sums.append(new_sum)
        self.current_sum = new_sum
        return new_sum

    def entries(self) -> Iterator[tuple[int, Number | None, Number]]:
        """Iterate ``(index, value, running_sum)`` in recording order.

        The entries are copied when ``entries()`` is called, so a body that
        records into the same register while it is being replayed does not
        extend the replay.
        """
        snapshot = [
            (index, value, running_sum)
            for index, (value, running_sum) in enumerate(
                zip(self.values, self.running_sums, strict=True)
            )
        ]
        return iter(snapshot)

    def __len__(self) -> int:
        return len(self.values)
