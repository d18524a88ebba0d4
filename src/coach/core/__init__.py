"""Functional core - pure business logic with no I/O."""

from .models import Goal, Todo, Note, NoteKind, Workout, WorkoutType, Exercise
from .briefing import BriefingData, assemble_briefing, format_briefing, briefing_streak, classify_due
from .recap import RecapData, format_recap, format_recap_confirmation, productivity_score
from .stats import aggregate_workouts, compare_halves, format_stats, stats_streak, type_distribution

__all__ = [
    # Models
    "Goal",
    "Todo",
    "Note",
    "NoteKind",
    "Workout",
    "WorkoutType",
    "Exercise",
    # Briefing
    "BriefingData",
    "assemble_briefing",
    "format_briefing",
    "briefing_streak",
    "classify_due",
    # Recap
    "RecapData",
    "format_recap",
    "format_recap_confirmation",
    "productivity_score",
    # Stats
    "aggregate_workouts",
    "compare_halves",
    "format_stats",
    "stats_streak",
    "type_distribution",
]
