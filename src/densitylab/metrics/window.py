from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, Optional, TypeVar

import numpy as np

T = TypeVar("T", int, float)


class RollingWindow(Generic[T]):
    """
    Bounded FIFO of the last `maxlen` values with a simple moving average.

    Pushing into a full window drops the oldest value first.
    """

    def __init__(self, maxlen: int = 200) -> None:
        if maxlen < 1:
            raise ValueError(f"RollingWindow maxlen must be >= 1, got {maxlen}")
        self._values: Deque[T] = deque(maxlen=int(maxlen))

    @property
    def maxlen(self) -> int:
        return int(self._values.maxlen or 0)

    def push(self, value: T) -> None:
        self._values.append(value)

    def mean(self) -> Optional[float]:
        if len(self._values) == 0:
            return None
        return float(np.mean(np.asarray(self._values, dtype=float)))

    def values(self) -> list[T]:
        return list(self._values)

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[T]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"RollingWindow(len={len(self)}, maxlen={self.maxlen}, mean={self.mean()})"
