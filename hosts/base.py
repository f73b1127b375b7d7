"""Workbook host interface consumed by the translation manager."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass
class RangeData:
    """Values of a rectangular range plus its sheet-qualified address."""
    sheet_name: str
    address: str
    values: List[List[Any]]


def local_address(address: str) -> str:
    """Strip the sheet qualifier: "'My Sheet'!A1:B2" -> "A1:B2"."""
    if "!" in address:
        return address[address.rindex("!") + 1:]
    return address


def qualify_address(sheet_name: str, address: str) -> str:
    """Build a sheet-qualified address, quoting names that need it."""
    if _needs_quotes(sheet_name):
        escaped = sheet_name.replace("'", "''")
        return f"'{escaped}'!{address}"
    return f"{sheet_name}!{address}"


def _needs_quotes(sheet_name: str) -> bool:
    return not sheet_name.replace("_", "").isalnum()


class WorkbookHost(ABC):
    """Spreadsheet application the translator reads from and writes to."""

    @abstractmethod
    async def sheet_names(self) -> List[str]:
        """Names of all worksheets in workbook order."""
        pass

    @abstractmethod
    async def read_range(self, sheet_name: str, address: str) -> RangeData:
        """Read the values of a rectangular range."""
        pass

    @abstractmethod
    async def read_used_range(self, sheet_name: str) -> Optional[RangeData]:
        """Read the used range of a sheet, or None when the sheet is empty."""
        pass

    @abstractmethod
    async def write_range(self, sheet_name: str, address: str, values: List[List[Any]]):
        """Write a grid with the same shape as the range at ``address``."""
        pass

    @abstractmethod
    async def copy_sheet_after(self, sheet_name: str):
        """Copy a sheet and position the copy right after it.

        The copy's name is chosen by the host; callers find it by comparing
        ``sheet_names()`` before and after.
        """
        pass

    @abstractmethod
    async def rename_sheet(self, sheet_name: str, new_name: str):
        pass

    async def all_sheet_names(self) -> List[str]:
        """Names of every sheet, chartsheets included; new names must not collide with any of them."""
        return await self.sheet_names()

    async def save(self):
        """Persist pending changes (no-op for live hosts)."""
        pass
