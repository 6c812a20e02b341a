from __future__ import annotations

from typing import Dict, Mapping, Optional, Protocol


class EmployeeDirectory(Protocol):
    """Read-only lookup of employee display names."""

    def get_name(self, employee_id: int) -> Optional[str]:
        raise NotImplementedError


class InMemoryEmployeeDirectory(EmployeeDirectory):
    def __init__(self, names: Optional[Mapping[int, str]] = None):
        self._names: Dict[int, str] = {int(k): v for k, v in (names or {}).items()}

    def get_name(self, employee_id: int) -> Optional[str]:
        return self._names.get(int(employee_id))
