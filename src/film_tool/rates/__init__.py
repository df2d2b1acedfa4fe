"""Rates subpackage - rate table lookups and CSV loading."""
from .rate_table import RateTable
from .rate_loader import load_rate_table, RateTableError

__all__ = ['RateTable', 'load_rate_table', 'RateTableError']
