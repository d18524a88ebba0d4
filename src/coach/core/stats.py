"""Pure workout statistics - no I/O dependencies."""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from .models import Workout, WorkoutType

TREND_MIN_DAYS = 14
PERCENT_THRESHOLD = 5.0
RPE_THRESHOLD = 0.5


def _mean(values: Iterable[float | None]) -> float | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


@dataclass
class WorkoutAggregate:
    total_workouts: int
    total_distance_miles: float
    total_duration_mins: int
    avg_rpe: float | None
    avg_heart_rate: float | None
    last_workout_date: date | None

    @property
    def avg_distance(self) -> float:
        return self.total_distance_miles / self.total_workouts if self.total_workouts else 0.0

    @property
    def avg_duration(self) -> float:
        return self.total_duration_mins / self.total_workouts if self.total_workouts else 0.0


def aggregate_workouts(workouts: Sequence[Workout]) -> WorkoutAggregate:
    """Totals and averages; averages skip workouts missing the value."""
    dates = [w.date for w in workouts if w.date]
    return WorkoutAggregate(
        total_workouts=len(workouts),
        total_distance_miles=sum(w.distance_miles or 0 for w in workouts),
        total_duration_mins=sum(w.duration_mins or 0 for w in workouts),
        avg_rpe=_mean(w.rpe for w in workouts),
        avg_heart_rate=_mean(w.avg_heart_rate for w in workouts),
        last_workout_date=max(dates) if dates else None,
    )


def type_distribution(workouts: Iterable[Workout]) -> dict[WorkoutType, int]:
    """Workout count per type, most common first."""
    return dict(Counter(w.type for w in workouts).most_common())


def stats_streak(workout_dates: Iterable[date]) -> int:
    """
    Length of the daily run ending at the latest logged workout date.

    Anchored on the newest entry, not on today: a run that ended last week
    still counts in full.
    """
    distinct = sorted(set(workout_dates), reverse=True)
    if not distinct:
        return 0

    streak = 1
    for newer, older in zip(distinct, distinct[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


@dataclass
class PeriodStats:
    workouts: int
    avg_distance: float
    avg_duration: float
    avg_rpe: float


def period_stats(workouts: Sequence[Workout]) -> PeriodStats:
    return PeriodStats(
        workouts=len(workouts),
        avg_distance=_mean(w.distance_miles for w in workouts) or 0.0,
        avg_duration=_mean(w.duration_mins for w in workouts) or 0.0,
        avg_rpe=_mean(w.rpe for w in workouts) or 0.0,
    )


def _percent_change(recent: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (recent - previous) / previous * 100


@dataclass
class TrendComparison:
    """Recent half of a window against the older half."""

    recent: PeriodStats
    previous: PeriodStats

    @property
    def workout_change(self) -> int:
        return self.recent.workouts - self.previous.workouts

    @property
    def distance_change(self) -> float:
        return _percent_change(self.recent.avg_distance, self.previous.avg_distance)

    @property
    def duration_change(self) -> float:
        return _percent_change(self.recent.avg_duration, self.previous.avg_duration)

    @property
    def rpe_change(self) -> float:
        return self.recent.avg_rpe - self.previous.avg_rpe


def compare_halves(workouts: Sequence[Workout], today: date, days: int) -> TrendComparison:
    """
    Split a `days` window ending today into two halves and compare them.

    Recent half: the last floor(days / 2) days. Previous half: the rest of
    the window before that.
    """
    half = days // 2
    recent_start = today - timedelta(days=half)
    window_start = today - timedelta(days=days)

    dated = [w for w in workouts if w.date]
    recent = [w for w in dated if w.date >= recent_start]
    previous = [w for w in dated if window_start <= w.date < recent_start]
    return TrendComparison(recent=period_stats(recent), previous=period_stats(previous))


def _arrow(change: float) -> str:
    return "↑" if change > 0 else "↓"


def _signed(value: float, digits: int = 1) -> str:
    return f"{'+' if value > 0 else ''}{value:.{digits}f}"


def format_trend(trend: TrendComparison) -> str:
    lines = ["**Trend Analysis:**"]

    change = trend.workout_change
    if change > 0:
        lines.append(f"- Workout frequency: +{change} workouts vs previous period ↑")
    elif change < 0:
        lines.append(f"- Workout frequency: {change} workouts vs previous period ↓")
    else:
        lines.append("- Workout frequency: Consistent with previous period →")

    if abs(trend.distance_change) > PERCENT_THRESHOLD:
        lines.append(f"- Average distance: {_signed(trend.distance_change)}% {_arrow(trend.distance_change)}")

    if abs(trend.duration_change) > PERCENT_THRESHOLD:
        lines.append(f"- Average duration: {_signed(trend.duration_change)}% {_arrow(trend.duration_change)}")

    if abs(trend.rpe_change) > RPE_THRESHOLD:
        feel = "(working harder)" if trend.rpe_change > 0 else "(feeling easier)"
        lines.append(f"- Perceived effort: {_signed(trend.rpe_change)} RPE {feel} {_arrow(trend.rpe_change)}")

    return "\n".join(lines)


def format_no_workouts(days: int | None, type: WorkoutType | None) -> str:
    type_desc = f" {type.value}" if type else ""
    period_desc = f" in the last {days} days" if days else ""
    return f"No{type_desc} workouts found{period_desc}."


def format_stats(
    aggregate: WorkoutAggregate,
    distribution: dict[WorkoutType, int],
    streak: int,
    trend: TrendComparison | None,
    days: int | None = None,
    type: WorkoutType | None = None,
) -> str:
    """Render the statistics report."""
    period_desc = f" (Last {days} days)" if days else " (All time)"
    type_desc = f"{type.value.upper()} " if type else ""
    total = aggregate.total_workouts

    lines = [f"**{type_desc}Workout Statistics{period_desc}**", "", "**Overview:**"]
    lines.append(f"- Total workouts: {total}")
    lines.append(f"- Current streak: {streak} days")

    if aggregate.total_distance_miles > 0:
        lines.append(f"- Total distance: {aggregate.total_distance_miles:.1f} miles")
        lines.append(f"- Average distance: {aggregate.avg_distance:.1f} miles per workout")

    if aggregate.total_duration_mins > 0:
        hours, minutes = divmod(aggregate.total_duration_mins, 60)
        lines.append(f"- Total time: {hours}h {minutes}m")
        lines.append(f"- Average duration: {round(aggregate.avg_duration)} minutes")

    if aggregate.avg_rpe:
        lines.append(f"- Average RPE: {aggregate.avg_rpe:.1f}/10")

    if aggregate.avg_heart_rate:
        lines.append(f"- Average heart rate: {round(aggregate.avg_heart_rate)} BPM")

    if aggregate.last_workout_date:
        lines.append(f"- Last workout: {aggregate.last_workout_date.isoformat()}")

    if type is None and len(distribution) > 1:
        lines.append("")
        lines.append("**Workout Types:**")
        for workout_type, count in distribution.items():
            lines.append(f"- {workout_type.value}: {count} workouts ({count / total * 100:.0f}%)")

    if trend is not None:
        lines.append("")
        lines.append(format_trend(trend))

    return "\n".join(lines)
