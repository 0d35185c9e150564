# album_collab/summary/aggregator.py

"""Recompute response counts and per-criterion averages for the summary."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, localcontext
from numbers import Real
from typing import Any, Protocol

from album_collab.domain.errors import ScoreFormatError
from album_collab.domain.models import TBD, SummaryTable

logger = logging.getLogger(__name__)

SIGNIFICANT_DIGITS = 2


class ScoreSource(Protocol):
    def response_count_and_values(
        self, title: str, artist: str
    ) -> tuple[int, Sequence[Sequence[Any]]]: ...


def to_precision(value: float, digits: int = SIGNIFICANT_DIGITS) -> str:
    """Format ``value`` with ``digits`` significant digits.

    Behaves like JavaScript's ``Number.prototype.toPrecision``: the exact
    binary value is rounded half up, trailing zeros are kept, and exponent
    notation is used when the exponent is below -6 or at least ``digits``.

    >>> to_precision(9.0)
    '9.0'
    >>> to_precision(0.00987)
    '0.0099'
    """
    if digits < 1:
        msg = "digits must be >= 1."
        raise ValueError(msg)

    if value == 0:
        return "0" if digits == 1 else "0." + "0" * (digits - 1)

    sign = "-" if value < 0 else ""
    with localcontext() as ctx:
        ctx.prec = 100
        exact = abs(Decimal(value))
        exponent = exact.adjusted()
        step = Decimal(1).scaleb(-(digits - 1))
        mantissa = exact.scaleb(-exponent).quantize(step, rounding=ROUND_HALF_UP)
        if mantissa >= 10:
            # Rounding carried into a new leading digit (e.g. 9.96 -> 10).
            exponent += 1
            mantissa = exact.scaleb(-exponent).quantize(step, rounding=ROUND_HALF_UP)

    figures = str(mantissa).replace(".", "")

    if exponent < -6 or exponent >= digits:
        text = figures[0]
        if len(figures) > 1:
            text += "." + figures[1:]
        exp_sign = "+" if exponent >= 0 else "-"
        return f"{sign}{text}e{exp_sign}{abs(exponent)}"

    if exponent >= 0:
        whole, frac = figures[: exponent + 1], figures[exponent + 1 :]
        return sign + whole + ("." + frac if frac else "")

    return sign + "0." + "0" * (-exponent - 1) + figures


def average(values: Sequence[Any], count: int) -> str:
    """Sum ``values`` and divide by the response count.

    Values are not filtered: every entry must be a number.
    """
    total = 0.0
    for value in values:
        if isinstance(value, bool) or not isinstance(value, Real):
            msg = f"Score {value!r} is not a number."
            raise ScoreFormatError(msg)
        total += float(value)
    return to_precision(total / count)


class SummaryAggregator:
    """Recalculates the derived columns of every summary row."""

    def __init__(self, criteria_count: int) -> None:
        self.criteria_count = criteria_count

    def recompute(self, table: SummaryTable, source: ScoreSource) -> SummaryTable:
        """Refresh counts and averages for all rows of ``table``.

        All rows are computed before any is written; if a row cannot be
        resolved (ResolutionFailure) or holds a non-numeric score
        (ScoreFormatError) the table is left as it was.
        """
        results: list[tuple[int, list[str]]] = []

        for row in table:
            count, columns = source.response_count_and_values(row.title, row.artist)
            results.append((count, self._averages(count, columns)))

        for row, (count, averages) in zip(table.rows, results):
            row.response_count = count
            row.averages = averages

        logger.info("Recalculated %d summary rows.", len(results))
        return table

    def _averages(self, count: int, columns: Sequence[Sequence[Any]]) -> list[str]:
        if count < 1:
            return [TBD] * self.criteria_count

        if len(columns) != self.criteria_count:
            msg = (
                f"Expected {self.criteria_count} score columns, "
                f"got {len(columns)}."
            )
            raise ScoreFormatError(msg)

        return [average(values, count) for values in columns]
