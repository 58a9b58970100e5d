"""
Z-score utilities for anthropometric readings.

A Z-score is the standardized deviation of a reading from the reference
population mean: z = (value - mean) / sd.
"""

from __future__ import annotations

from isak.reference.tables import DEFAULT_REFERENCE_TABLES, ReferenceTables


def z_score(value: float, mean: float, sd: float) -> float:
    """
    Standardized deviation of ``value`` from ``mean`` in units of ``sd``.

    A zero standard deviation is a defined degenerate case and yields 0.0.
    """
    if sd == 0:
        return 0.0
    return (value - mean) / sd


class ZScoreEvaluator:
    def __init__(self, tables: ReferenceTables = DEFAULT_REFERENCE_TABLES) -> None:
        self._tables = tables

    @property
    def tables(self) -> ReferenceTables:
        return self._tables

    def evaluate(self, field_name: str, value: float) -> float | None:
        """Z-score for a reading, or None when no reference population is known."""
        if not self._tables.has_reference(field_name):
            return None
        ref = self._tables.reference_for(field_name)
        return z_score(value, ref.mean, ref.sd)
