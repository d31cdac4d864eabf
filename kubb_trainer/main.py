"""
Kubb Trainer — entry point.

Supports two modes:
  - Stats mode: prints a statistics summary from the local database
  - Simulate mode: runs a training session fed by the mock watch

Usage:
    python -m kubb_trainer.main                          # Practice stats
    python -m kubb_trainer.main --stats --variant inkast_blast
    python -m kubb_trainer.main --simulate               # 8 m practice, mock watch
    python -m kubb_trainer.main --simulate --preset sniper --target 60
    python -m kubb_trainer.main --simulate --variant inkast_blast --phase mid
"""

import argparse
import logging
import signal
import sys

from PyQt6.QtCore import QCoreApplication, QTimer

from kubb_trainer import stats
from kubb_trainer.database.db import Database
from kubb_trainer.database.pointers import ActiveSessionPointers
from kubb_trainer.lifecycle import LifecycleManager
from kubb_trainer.mock_watch import PRESETS
from kubb_trainer.models.phases import InkastPhase
from kubb_trainer.models.variant import PracticeMode, SessionVariant
from kubb_trainer.utils.config import Config

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def create_manager() -> tuple[LifecycleManager, Database]:
    """Build the lifecycle manager on the local database and pointer file."""
    db = Database()
    manager = LifecycleManager(db, ActiveSessionPointers())
    return manager, db


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def print_stats(manager: LifecycleManager, variant: SessionVariant):
    """Print a statistics summary for one variant."""
    sessions = manager.all_sessions(variant)
    counts = manager.session_counts()

    print(f"\n{'='*60}")
    print(f"  {variant.display_name} — {counts.get(variant, 0)} sessions stored")
    print(f"{'='*60}")

    if variant is SessionVariant.PRACTICE:
        overall = stats.overall_stats(sessions)
        training = stats.training_stats(sessions)
        zones = stats.performance_zones(sessions)
        form = stats.recent_form(sessions, window=Config().get("recent_form_window", 5))
        records = stats.personal_records(sessions)
        advanced = stats.advanced_stats(sessions)
        progression = stats.round_progression(sessions)
        trend = stats.trend_series(sessions, window=Config().get("trend_window", 3))

        print(f"  Sessions:        {overall.total_sessions}")
        print(f"  Batons:          {overall.total_throws}")
        print(f"  Accuracy:        {_pct(overall.overall_accuracy)}")
        print(f"  Best streak:     {overall.best_streak}")
        print(f"  Baseline clears: {training.baseline_clears}")
        print(f"  King:            {training.king_hits}/{training.king_attempts}")
        print(f"  Zones:           excellent {zones.excellent}, good {zones.good}, "
              f"average {zones.average}, needs work {zones.needs_work}")
        print(f"  Recent form:     {_pct(form.recent_avg)} "
              f"(last {form.session_count}) vs {_pct(form.overall_avg)}")
        print(f"  Perfect rounds:  {records.perfect_rounds}")
        print(f"  First baton:     {_pct(advanced.first_throw_accuracy)}")
        print(f"  Clutch:          {_pct(advanced.clutch_accuracy)}")
        print(f"  Consistency:     {advanced.consistency_score:.2f}")
        print(f"  Drop-off:        {_pct(progression.drop_off)} (rounds 4+)")
        print(f"  Trend:           {trend.slope * 100:+.2f}% per session")

    elif variant is SessionVariant.INKAST_BLAST:
        summary = stats.inkast_blast_summary(sessions)
        print(f"  Sessions:        {summary.sessions}")
        print(f"  Rounds:          {summary.rounds}")
        print(f"  Kubbs / baton:   {summary.kubbs_per_baton:.2f}")
        print(f"  Penalty rate:    {_pct(summary.penalty_rate)}")
        print(f"  Handicap:        {summary.handicap:+.2f}")
        for phase, ps in summary.phases.items():
            print(f"  {phase.display_name + ':':<17}{ps.rounds} rounds, "
                  f"first cast {_pct(ps.first_cast_success)}, "
                  f"A-lines {ps.a_lines}, score {ps.score:+d}")

    else:
        summary = stats.full_game_summary(sessions)
        print(f"  Games:           {summary.games}")
        print(f"  Victories:       {summary.victories} ({_pct(summary.win_rate)})")
        print(f"  Avg rounds:      {summary.avg_rounds:.1f}")
        print(f"  Handicap:        {summary.handicap:+.2f}")
        print(f"  8 m accuracy:    {_pct(summary.eight_meter_accuracy)}")
    print(f"{'='*60}\n")


def run_simulation(args):
    """Run a session driven by the mock watch until done or Ctrl+C."""
    from kubb_trainer.mock_watch import MockWatch
    from kubb_trainer.watch_bridge import WatchBridge

    app = QCoreApplication(sys.argv)
    config = Config()
    manager, db = create_manager()
    manager.handle_app_foreground()

    bridge = WatchBridge(manager)
    watch = MockWatch(
        preset=args.preset or config.get("mock_preset", "consistent_player"),
        throw_interval=tuple(config.get("mock_throw_interval", [2.0, 5.0])),
    )
    watch.message_sent.connect(bridge.receive_message)
    watch.connection_changed.connect(bridge.set_connected)
    bridge.context_updated.connect(watch.update_context)
    bridge.input_config_updated.connect(watch.update_input_config)
    bridge.error_occurred.connect(lambda msg: print(f"\n❌ Watch error: {msg}"))

    variant = SessionVariant(args.variant)

    def finish():
        watch.stop()
        watch.wait(3000)
        if manager.active_session(variant) is not None:
            session = manager.complete_session(variant)
            print(f"\nSession complete: {session.total_hits}/{session.total_throws} "
                  f"({_pct(session.accuracy)})")
            if session.practice_mode is PracticeMode.AROUND_THE_PITCH:
                if not session.all_targets_down:
                    print(f"Pitch not cleared (par {session.target})")
                else:
                    verdict = "within" if session.met_target else "over"
                    print(f"Pitch cleared in {session.total_throws} batons, "
                          f"{verdict} par {session.target}")
        db.close()
        app.quit()

    def on_update(session):
        current = session.current_round
        round_label = f"round {current.round_number}" if current else "round done"
        print(f"  {session.total_hits}/{session.total_throws} "
              f"({_pct(session.accuracy)}), {round_label}")
        if session.is_target_reached:
            finish()

    manager.session_updated.connect(on_update)

    target = args.target or config.default_target(variant.value, args.mode)
    if variant is SessionVariant.PRACTICE:
        session = manager.start_session(variant, target=target, mode=PracticeMode(args.mode))
    else:
        phase = InkastPhase(args.phase or config.get("inkast_blast_phase", "all"))
        session = manager.start_session(variant, target=target, game_phase=phase)

    print(f"\n✅ {session.title} started (target {session.target})")
    print(f"   Mock watch preset: {args.preset or config.get('mock_preset')}")
    print(f"   Waiting for throws... (Ctrl+C to finish)\n")

    # Handle Ctrl+C gracefully
    def signal_handler(sig, frame):
        print("\n\nFinishing session...")
        finish()

    signal.signal(signal.SIGINT, signal_handler)

    watch.start()

    # Keep the event loop responsive to SIGINT
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(100)

    sys.exit(app.exec())


def main():
    parser = argparse.ArgumentParser(
        description="Kubb Trainer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--stats", dest="command", action="store_const", const="stats",
        help="Print a statistics summary (default)",
    )
    mode_group.add_argument(
        "--simulate", dest="command", action="store_const", const="simulate",
        help="Run a session fed by the mock watch",
    )
    parser.set_defaults(command="stats")

    parser.add_argument(
        "--variant", type=str, default=SessionVariant.PRACTICE.value,
        choices=[v.value for v in SessionVariant],
        help="Training variant (default: practice)",
    )
    parser.add_argument(
        "--mode", type=str, default=PracticeMode.STANDARD.value,
        choices=[m.value for m in PracticeMode],
        help="Practice mode for --simulate (default: standard)",
    )
    parser.add_argument(
        "--phase", type=str, default=None,
        choices=[p.value for p in InkastPhase],
        help="Inkast-Blast game phase for --simulate",
    )
    parser.add_argument(
        "--preset", type=str, default=None,
        choices=sorted(PRESETS),
        help="Mock watch player preset",
    )
    parser.add_argument(
        "--target", type=int, default=None,
        help="Session target (batons for practice, rounds for Inkast-Blast)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.command == "simulate":
        if args.variant == SessionVariant.FULL_GAME_SIM.value:
            parser.error("--simulate supports the practice and inkast_blast variants")
        run_simulation(args)
    else:
        manager, db = create_manager()
        try:
            print_stats(manager, SessionVariant(args.variant))
        finally:
            db.close()


if __name__ == "__main__":
    main()
