"""
Game-rule constants and statistics thresholds for Kubb Trainer.

Field layout follows the standard kubb rule set: five kubbs on each
baseline, six batons per turn, a king in the middle of the pitch.
"""

# =============================================================================
# Field Layout
# =============================================================================

BASELINE_KUBBS = 5             # Kubbs standing on one baseline
FIELD_END_KUBBS = 2 * BASELINE_KUBBS  # Both baselines (around the pitch)
BATONS_PER_ROUND = 6           # Batons per 8 m round (5 baseline + 1 king)
MAX_INKAST_KUBBS = 10          # Most kubbs that can be inkasted in one round
TEAM_BASELINE_KUBBS = 5        # Starting baseline pool per team (full game)
NUM_TEAMS = 2

# =============================================================================
# Full Game Simulation
# =============================================================================

# Maximum batons in the attacking phase, by round number.
# Round 1 → 2, round 2 → 4, every later round → 6.
ATTACKING_BATON_LIMITS = {
    1: 2,
    2: 4,
}
ATTACKING_BATON_LIMIT_DEFAULT = 6

# =============================================================================
# Inkast / Blast
# =============================================================================

# Expected batons to clear n inkasted kubbs. Counts outside the table
# fall back to ceil((n + 1) / 2).
EXPECTED_BATON_COST = {
    1: 1,
    2: 1,
    3: 2,
    4: 2,
    5: 3,
    6: 3,
    7: 3,
    8: 4,
    9: 4,
    10: 4,
}

# Inkast phase buckets: name → (min kubbs, max kubbs)
INKAST_PHASE_RANGES = {
    "early": (1, 3),
    "mid": (4, 7),
    "end": (8, 10),
    "all": (1, 10),
}

# A blast round using more batons than this earns the opponent an A-line
A_LINE_BATON_THRESHOLD = 6

# Most kubb-count options offered on the wrist device per throw
MAX_MULTI_KUBB_OPTIONS = 4

# =============================================================================
# Statistics
# =============================================================================

# Performance zones: lower accuracy bound (inclusive) per band
ZONE_EXCELLENT = 0.9
ZONE_GOOD = 0.7
ZONE_AVERAGE = 0.5

RECENT_FORM_WINDOW = 5         # Sessions counted as "recent"
TREND_WINDOW = 3               # Rolling-mean window for trend series
EARLY_ROUND_CUTOFF = 3         # Rounds 1-3 are "early" in round progression
CLUTCH_MIN_HITS = 3            # Clutch throws: taken with 3-4 kubbs already down
CLUTCH_MAX_HITS = 4
