from __future__ import annotations

from typing import Any, Protocol


class SDF(Protocol):
    """Time-dependent signed distance field contract."""

    def distance(self, p: Any, time: float = 0.0) -> Any:
        """Signed distance to surface at points p of shape (..., 3)."""
        ...
