"""
Table and field-mapping components for geomatch.
"""

from .fields import ColumnKind, FieldMap, Variable
from .table import Table

__all__ = ['Table', 'FieldMap', 'Variable', 'ColumnKind']
