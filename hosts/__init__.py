"""Workbook hosts the translator reads from and writes to."""

from .base import RangeData, WorkbookHost, local_address, qualify_address
from .openpyxl_host import OpenpyxlWorkbookHost

__all__ = [
    'RangeData',
    'WorkbookHost',
    'local_address',
    'qualify_address',
    'OpenpyxlWorkbookHost',
]
