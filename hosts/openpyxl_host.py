"""Workbook host backed by an .xlsx file opened with openpyxl."""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Tuple

import openpyxl
from openpyxl.cell.cell import MergedCell
from openpyxl.utils import get_column_letter, range_boundaries
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from errors import HostError
from .base import RangeData, WorkbookHost, local_address, qualify_address

logger = logging.getLogger(__name__)


class OpenpyxlWorkbookHost(WorkbookHost):
    """
    Reads and writes cell values of a workbook file.

    openpyxl is synchronous, so every workbook operation runs in a
    single-thread executor. Formula cells are reported as empty and are
    never overwritten, which keeps formulas intact in both output modes.
    """

    def __init__(self, input_file: str, output_file: Optional[str] = None):
        self.input_file = input_file
        self.output_file = output_file or input_file
        self.workbook: Optional[Workbook] = None
        self.executor = ThreadPoolExecutor(max_workers=1)

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, functools.partial(func, *args, **kwargs))

    async def open(self) -> "OpenpyxlWorkbookHost":
        logger.info(f"Loading workbook: {self.input_file}")
        self.workbook = await self._run(openpyxl.load_workbook, self.input_file)
        return self

    async def save(self):
        logger.info(f"Saving workbook to: {self.output_file}")
        await self._run(self._require_workbook().save, self.output_file)

    async def close(self):
        if self.workbook is not None:
            self.workbook.close()
            self.workbook = None
        self.executor.shutdown(wait=False)

    def _require_workbook(self) -> Workbook:
        if self.workbook is None:
            raise HostError("Workbook is not open.")
        return self.workbook

    def _sheet(self, sheet_name: str) -> Worksheet:
        workbook = self._require_workbook()
        if sheet_name not in workbook.sheetnames:
            raise HostError(f"Worksheet '{sheet_name}' not found.")
        sheet = workbook[sheet_name]
        if not isinstance(sheet, Worksheet):
            raise HostError(f"'{sheet_name}' is not a worksheet.")
        return sheet

    @staticmethod
    def _bounds(address: str) -> Tuple[int, int, int, int]:
        try:
            min_col, min_row, max_col, max_row = range_boundaries(local_address(address).replace("$", ""))
        except (TypeError, ValueError) as e:
            raise HostError(f"Invalid range address '{address}': {e}") from e
        if None in (min_col, min_row, max_col, max_row):
            raise HostError(f"Range address '{address}' must have explicit rows and columns.")
        return min_col, min_row, max_col, max_row

    @staticmethod
    def _format_address(min_col: int, min_row: int, max_col: int, max_row: int) -> str:
        return f"{get_column_letter(min_col)}{min_row}:{get_column_letter(max_col)}{max_row}"

    async def sheet_names(self) -> List[str]:
        return [sheet.title for sheet in self._require_workbook().worksheets]

    async def all_sheet_names(self) -> List[str]:
        return list(self._require_workbook().sheetnames)

    async def read_range(self, sheet_name: str, address: str) -> RangeData:
        return await self._run(self._read_range, sheet_name, address)

    def _read_range(self, sheet_name: str, address: str) -> RangeData:
        sheet = self._sheet(sheet_name)
        min_col, min_row, max_col, max_row = self._bounds(address)
        values: List[List[Any]] = []
        for row in sheet.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col):
            values.append([None if cell.data_type == 'f' else cell.value for cell in row])
        normalized = self._format_address(min_col, min_row, max_col, max_row)
        return RangeData(sheet_name=sheet_name, address=qualify_address(sheet_name, normalized), values=values)

    async def read_used_range(self, sheet_name: str) -> Optional[RangeData]:
        sheet = self._sheet(sheet_name)
        data = await self.read_range(sheet_name, sheet.calculate_dimension())
        if all(value is None for row in data.values for value in row):
            return None
        return data

    async def write_range(self, sheet_name: str, address: str, values: List[List[Any]]):
        await self._run(self._write_range, sheet_name, address, values)

    def _write_range(self, sheet_name: str, address: str, values: List[List[Any]]):
        sheet = self._sheet(sheet_name)
        min_col, min_row, max_col, max_row = self._bounds(address)
        rows, cols = max_row - min_row + 1, max_col - min_col + 1
        if len(values) != rows or any(len(row) != cols for row in values):
            raise HostError(f"Values do not match the {rows}x{cols} shape of range '{address}'.")

        for row_cells, row_values in zip(
            sheet.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col),
            values,
        ):
            for cell, value in zip(row_cells, row_values):
                if isinstance(cell, MergedCell) or cell.data_type == 'f':
                    continue
                if cell.value == value:
                    continue
                cell.value = value
                # A translated text starting with "=" is still text
                if isinstance(value, str) and value.startswith("="):
                    cell.data_type = 's'

    async def copy_sheet_after(self, sheet_name: str):
        workbook = self._require_workbook()
        source = self._sheet(sheet_name)
        copy = workbook.copy_worksheet(source)
        target_index = workbook.sheetnames.index(sheet_name) + 1
        workbook.move_sheet(copy, offset=target_index - workbook.index(copy))
        logger.debug(f"Copied sheet '{sheet_name}' to '{copy.title}'")

    async def rename_sheet(self, sheet_name: str, new_name: str):
        sheet = self._sheet(sheet_name)
        others = {name.lower() for name in self._require_workbook().sheetnames if name != sheet_name}
        if new_name.lower() in others:
            raise HostError(f"A worksheet named '{new_name}' already exists.")
        try:
            sheet.title = new_name
        except ValueError as e:
            raise HostError(f"Invalid worksheet name '{new_name}': {e}") from e
