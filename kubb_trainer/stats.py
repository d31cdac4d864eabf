"""
Statistics engine for Kubb Trainer.

Pure functions over collections of sessions and rounds. Every function
ignores sessions that are not complete, never mutates its input, and
returns a documented zero value instead of raising when there is
nothing to measure.

Practice:       overall_stats, training_stats, session_lengths,
                performance_zones, recent_form, personal_records,
                weekly_summary, advanced_stats, round_progression,
                round_position_accuracy, trend_series
Inkast-Blast:   handicap, first_cast_success_rate, phase_stats,
                inkast_blast_summary
Full game:      full_game_summary
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

import numpy as np
from scipy import stats as sp_stats

from kubb_trainer.models.phases import InkastPhase
from kubb_trainer.models.round import Round
from kubb_trainer.models.session import Session
from kubb_trainer.rules import classify_inkast_phase
from kubb_trainer.utils.constants import (
    A_LINE_BATON_THRESHOLD,
    CLUTCH_MAX_HITS,
    CLUTCH_MIN_HITS,
    EARLY_ROUND_CUTOFF,
    RECENT_FORM_WINDOW,
    TREND_WINDOW,
    ZONE_AVERAGE,
    ZONE_EXCELLENT,
    ZONE_GOOD,
)


# =============================================================================
# Result types
# =============================================================================

@dataclass(frozen=True)
class OverallStats:
    total_sessions: int = 0
    total_throws: int = 0
    total_hits: int = 0
    overall_accuracy: float = 0.0  # Mean of per-session accuracies
    best_streak: int = 0


@dataclass(frozen=True)
class TrainingStats:
    total_sessions: int = 0
    total_rounds: int = 0
    baseline_clears: int = 0
    king_hits: int = 0
    king_attempts: int = 0

    @property
    def king_accuracy(self) -> float:
        return accuracy(self.king_hits, self.king_attempts)


@dataclass(frozen=True)
class SessionLengths:
    """Throws per completed session."""
    average: float = 0.0
    shortest: int = 0
    longest: int = 0


@dataclass(frozen=True)
class PerformanceZones:
    excellent: int = 0   # accuracy >= 0.9
    good: int = 0        # 0.7 <= accuracy < 0.9
    average: int = 0     # 0.5 <= accuracy < 0.7
    needs_work: int = 0  # below 0.5

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.excellent, self.good, self.average, self.needs_work)


@dataclass(frozen=True)
class RecentForm:
    recent_avg: float = 0.0
    overall_avg: float = 0.0
    session_count: int = 0

    @property
    def delta(self) -> float:
        """Positive when recent sessions beat the long-run average."""
        return self.recent_avg - self.overall_avg


@dataclass(frozen=True)
class PersonalRecords:
    best_session_accuracy: float = 0.0
    longest_streak: int = 0
    perfect_rounds: int = 0
    most_baseline_clears: int = 0


@dataclass(frozen=True)
class WeeklySummary:
    sessions: int = 0
    throws: int = 0
    accuracy: float = 0.0
    baseline_clears: int = 0


@dataclass(frozen=True)
class AdvancedStats:
    first_throw_accuracy: float = 0.0
    consistency_score: float = 0.0
    clutch_accuracy: float = 0.0
    avg_hits_per_round: float = 0.0


@dataclass(frozen=True)
class RoundProgression:
    early_accuracy: float = 0.0  # rounds 1-3
    late_accuracy: float = 0.0   # rounds 4+
    drop_off: float = 0.0


@dataclass(frozen=True)
class TrendPoint:
    date: datetime
    accuracy: float
    rolling_accuracy: float
    hits: int
    throws: int


@dataclass(frozen=True)
class TrendSeries:
    points: list[TrendPoint] = field(default_factory=list)
    slope: float = 0.0  # Accuracy change per session (least squares)


@dataclass(frozen=True)
class PhaseStats:
    """Inkast-Blast rounds that fall into one kubb-count phase."""
    rounds: int = 0
    first_cast_success: float = 0.0
    neighbors: int = 0
    penalty_kubbs: int = 0
    a_lines: int = 0
    handicap: float = 0.0
    score: int = 0  # Batons over target, summed (negative is good)


@dataclass(frozen=True)
class InkastBlastSummary:
    sessions: int = 0
    rounds: int = 0
    kubbs_placed: int = 0
    batons: int = 0
    kubbs_per_baton: float = 0.0
    penalty_rate: float = 0.0
    neighbor_rate: float = 0.0
    handicap: float = 0.0
    phases: dict[InkastPhase, PhaseStats] = field(default_factory=dict)


@dataclass(frozen=True)
class FullGameSummary:
    games: int = 0
    victories: int = 0
    win_rate: float = 0.0
    avg_rounds: float = 0.0
    handicap: float = 0.0
    eight_meter_accuracy: float = 0.0


# =============================================================================
# Helpers
# =============================================================================

def accuracy(hits: int, throws: int) -> float:
    """hits / throws, or 0.0 when nothing was thrown."""
    if throws <= 0:
        return 0.0
    return hits / throws


def completed(sessions: Iterable[Session]) -> list[Session]:
    """Completed sessions in chronological order."""
    return sorted((s for s in sessions if s.is_complete), key=lambda s: s.date)


def _completed_rounds(sessions: list[Session]) -> list[Round]:
    return [r for s in sessions for r in s.completed_rounds]


def best_streak(sessions: Iterable[Session]) -> int:
    """Longest run of consecutive hits across every throw, in play order."""
    longest = 0
    current = 0
    for session in completed(sessions):
        for throw in session.all_throws():
            if throw.is_hit:
                current += 1
                longest = max(longest, current)
            else:
                current = 0
    return longest


def consistency_score(accuracies: list[float]) -> float:
    """1 / (1 + variance) of session accuracies; 0.0 with fewer than two."""
    if len(accuracies) < 2:
        return 0.0
    return float(1.0 / (1.0 + np.var(accuracies)))


# =============================================================================
# Practice
# =============================================================================

def overall_stats(sessions: Iterable[Session]) -> OverallStats:
    done = completed(sessions)
    if not done:
        return OverallStats()
    return OverallStats(
        total_sessions=len(done),
        total_throws=sum(s.total_throws for s in done),
        total_hits=sum(s.total_hits for s in done),
        overall_accuracy=float(np.mean([s.accuracy for s in done])),
        best_streak=best_streak(done),
    )


def training_stats(sessions: Iterable[Session]) -> TrainingStats:
    done = completed(sessions)
    return TrainingStats(
        total_sessions=len(done),
        total_rounds=sum(len(s.completed_rounds) for s in done),
        baseline_clears=sum(s.baseline_clears for s in done),
        king_hits=sum(s.king_hits for s in done),
        king_attempts=sum(s.king_attempts for s in done),
    )


def session_lengths(sessions: Iterable[Session]) -> SessionLengths:
    lengths = [s.total_throws for s in completed(sessions)]
    if not lengths:
        return SessionLengths()
    return SessionLengths(
        average=float(np.mean(lengths)),
        shortest=min(lengths),
        longest=max(lengths),
    )


def performance_zones(sessions: Iterable[Session]) -> PerformanceZones:
    counts = [0, 0, 0, 0]
    for session in completed(sessions):
        acc = session.accuracy
        if acc >= ZONE_EXCELLENT:
            counts[0] += 1
        elif acc >= ZONE_GOOD:
            counts[1] += 1
        elif acc >= ZONE_AVERAGE:
            counts[2] += 1
        else:
            counts[3] += 1
    return PerformanceZones(*counts)


def recent_form(sessions: Iterable[Session],
                window: int = RECENT_FORM_WINDOW) -> RecentForm:
    """Mean accuracy of the newest `window` sessions vs. all sessions."""
    done = completed(sessions)
    if not done:
        return RecentForm()
    recent = done[::-1][:window]
    return RecentForm(
        recent_avg=float(np.mean([s.accuracy for s in recent])),
        overall_avg=float(np.mean([s.accuracy for s in done])),
        session_count=len(recent),
    )


def personal_records(sessions: Iterable[Session]) -> PersonalRecords:
    done = completed(sessions)
    if not done:
        return PersonalRecords()
    return PersonalRecords(
        best_session_accuracy=max(s.accuracy for s in done),
        longest_streak=best_streak(done),
        perfect_rounds=sum(1 for r in _completed_rounds(done) if r.is_perfect),
        most_baseline_clears=max(s.baseline_clears for s in done),
    )


def weekly_summary(sessions: Iterable[Session],
                   today: Optional[datetime] = None) -> WeeklySummary:
    """Totals for sessions dated since Monday 00:00 of the current week."""
    today = today or datetime.now()
    week_start = datetime(today.year, today.month, today.day) - timedelta(days=today.weekday())
    week = [s for s in completed(sessions) if s.date >= week_start]
    if not week:
        return WeeklySummary()
    throws = sum(s.total_throws for s in week)
    hits = sum(s.total_hits for s in week)
    return WeeklySummary(
        sessions=len(week),
        throws=throws,
        accuracy=accuracy(hits, throws),
        baseline_clears=sum(s.baseline_clears for s in week),
    )


def advanced_stats(sessions: Iterable[Session]) -> AdvancedStats:
    """First-throw accuracy, clutch accuracy, hits per round, consistency.

    A clutch throw is one taken with 3 or 4 hits already in the round.
    """
    done = completed(sessions)
    if not done:
        return AdvancedStats()

    first_throws = first_hits = 0
    clutch_throws = clutch_hits = 0
    rounds = _completed_rounds(done)
    for round_ in rounds:
        if round_.throws:
            first_throws += 1
            first_hits += int(round_.throws[0].is_hit)
        hits_so_far = 0
        for throw in round_.throws:
            if CLUTCH_MIN_HITS <= hits_so_far <= CLUTCH_MAX_HITS:
                clutch_throws += 1
                clutch_hits += int(throw.is_hit)
            if throw.is_hit:
                hits_so_far += 1

    return AdvancedStats(
        first_throw_accuracy=accuracy(first_hits, first_throws),
        consistency_score=consistency_score([s.accuracy for s in done]),
        clutch_accuracy=accuracy(clutch_hits, clutch_throws),
        avg_hits_per_round=(sum(r.hits for r in rounds) / len(rounds)) if rounds else 0.0,
    )


def round_progression(sessions: Iterable[Session]) -> RoundProgression:
    """Accuracy in rounds 1-3 vs. rounds 4 and later."""
    early_hits = early_throws = late_hits = late_throws = 0
    for round_ in _completed_rounds(completed(sessions)):
        if round_.round_number <= EARLY_ROUND_CUTOFF:
            early_hits += round_.hits
            early_throws += round_.total_throws
        else:
            late_hits += round_.hits
            late_throws += round_.total_throws
    early = accuracy(early_hits, early_throws)
    late = accuracy(late_hits, late_throws)
    return RoundProgression(early_accuracy=early, late_accuracy=late, drop_off=early - late)


def round_position_accuracy(sessions: Iterable[Session]) -> dict[int, float]:
    """Hit rate by baton position within a round (1 = first baton)."""
    hits: dict[int, int] = {}
    throws: dict[int, int] = {}
    for round_ in _completed_rounds(completed(sessions)):
        for throw in round_.throws:
            throws[throw.index] = throws.get(throw.index, 0) + 1
            hits[throw.index] = hits.get(throw.index, 0) + int(throw.is_hit)
    return {pos: accuracy(hits[pos], throws[pos]) for pos in sorted(throws)}


def trend_series(sessions: Iterable[Session], window: int = TREND_WINDOW) -> TrendSeries:
    """Chronological accuracy points with a trailing rolling mean and slope."""
    done = completed(sessions)
    if not done:
        return TrendSeries()

    acc = np.array([s.accuracy for s in done], dtype=float)
    window = max(1, window)
    cumsum = np.concatenate(([0.0], np.cumsum(acc)))
    idx = np.arange(len(acc))
    starts = np.maximum(0, idx - window + 1)
    rolling = (cumsum[idx + 1] - cumsum[starts]) / (idx + 1 - starts)

    slope = 0.0
    if len(acc) >= 2:
        slope = float(sp_stats.linregress(idx, acc).slope)

    points = [
        TrendPoint(date=s.date, accuracy=float(a), rolling_accuracy=float(r),
                   hits=s.total_hits, throws=s.total_throws)
        for s, a, r in zip(done, acc, rolling)
    ]
    return TrendSeries(points=points, slope=slope)


# =============================================================================
# Inkast-Blast
# =============================================================================

def handicap(rounds: Iterable[Round]) -> float:
    """Mean performance vs. target (positive = fewer batons than expected)."""
    values = [r.performance_vs_target for r in rounds]
    if not values:
        return 0.0
    return float(np.mean(values))


def first_cast_success_rate(rounds: Iterable[Round]) -> float:
    """(kubbs placed − out on first attempt) / kubbs placed."""
    placed = out_first = 0
    for round_ in rounds:
        if round_.inkast is None:
            continue
        placed += round_.inkast.kubbs
        out_first += round_.inkast.out_first_attempt
    return accuracy(placed - out_first, placed)


def phase_stats(rounds: Iterable[Round]) -> dict[InkastPhase, PhaseStats]:
    """Completed rounds bucketed by kubb count; empty phases are omitted."""
    buckets: dict[InkastPhase, list[Round]] = {}
    for round_ in rounds:
        if round_.is_complete and round_.inkast is not None:
            buckets.setdefault(classify_inkast_phase(round_.inkast.kubbs), []).append(round_)

    result = {}
    for phase in InkastPhase:
        phase_rounds = buckets.get(phase)
        if not phase_rounds:
            continue
        result[phase] = PhaseStats(
            rounds=len(phase_rounds),
            first_cast_success=first_cast_success_rate(phase_rounds),
            neighbors=sum(r.inkast.neighbors for r in phase_rounds),
            penalty_kubbs=sum(r.inkast.penalty_kubbs for r in phase_rounds),
            a_lines=sum(1 for r in phase_rounds if r.total_throws > A_LINE_BATON_THRESHOLD),
            handicap=handicap(phase_rounds),
            score=sum(-r.performance_vs_target for r in phase_rounds),
        )
    return result


def inkast_blast_summary(sessions: Iterable[Session]) -> InkastBlastSummary:
    done = completed(sessions)
    rounds = _completed_rounds(done)
    if not rounds:
        return InkastBlastSummary(sessions=len(done))
    placed = sum(r.kubbs_placed for r in rounds)
    batons = sum(r.total_throws for r in rounds)
    knocked = sum(r.units_knocked for r in rounds)
    return InkastBlastSummary(
        sessions=len(done),
        rounds=len(rounds),
        kubbs_placed=placed,
        batons=batons,
        kubbs_per_baton=accuracy(knocked, batons),
        penalty_rate=accuracy(sum(r.inkast.penalty_kubbs for r in rounds if r.inkast), placed),
        neighbor_rate=accuracy(sum(r.inkast.neighbors for r in rounds if r.inkast), placed),
        handicap=handicap(rounds),
        phases=phase_stats(rounds),
    )


# =============================================================================
# Full game
# =============================================================================

def full_game_summary(sessions: Iterable[Session]) -> FullGameSummary:
    games = completed(sessions)
    if not games:
        return FullGameSummary()
    victories = sum(1 for s in games if s.outcome == "Victory")
    eight_m = [s.eight_meter_accuracy for s in games]
    return FullGameSummary(
        games=len(games),
        victories=victories,
        win_rate=victories / len(games),
        avg_rounds=float(np.mean([len(s.rounds) for s in games])),
        handicap=float(np.mean([s.overall_handicap for s in games])),
        eight_meter_accuracy=float(np.mean(eight_m)),
    )
