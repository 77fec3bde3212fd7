"""
Plain-text energy report.

CHANGELOG:
- 2026-10-19: Round durations to milliseconds before splitting (STORY-015)
- 2026-10-19: Initial creation (STORY-013)

TODO:
- None
"""

from energy.src.accumulator import Result, Totals

CURRENCY_LABEL = "¤"


def format_duration(seconds: float) -> str:
    """Render *seconds* as ``<d>d <hh>h <mm>m <ss.sss>s``.

    The value is rounded to whole milliseconds before it is split, so
    the seconds field never reads 60. Negative durations keep their
    sign in front.
    """
    millis = round(abs(seconds) * 1000)
    sign = "-" if seconds < 0 and millis else ""
    minutes, millis = divmod(millis, 60_000)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    return f"{sign}{days}d {hours:02d}h {minutes:02d}m {millis / 1000:06.3f}s"


def format_totals(label: str, totals: Totals) -> str:
    return (
        f"{label:<8} {format_duration(totals.elapsed_s):>22}  "
        f"{totals.energy_kwh:12.3f} kWh  {totals.cost:12.2f} {CURRENCY_LABEL}"
    )


def format_report(result: Result) -> str:
    """Build the report: one line per month, the grand total, then counters.

    Args:
        result: Accumulated run state.

    Returns:
        The report text, newline-terminated.
    """
    lines = [format_totals(str(key), totals) for key, totals in result.sorted_buckets()]
    lines.append(format_totals("Total", result.total))
    lines.append(f"Rollovers: {result.rollover_count}")
    lines.append(
        f"Documents: {result.documents} ({result.skipped} skipped), "
        f"intervals: {result.intervals} accounted, "
        f"{result.inconsistent} inconsistent"
    )
    if result.tainted:
        lines.append("WARNING: totals exclude intervals that could not be reconciled")
    return "\n".join(lines) + "\n"
