"""Shared constants for the studydeck application."""

# SM-2 bounds
DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3
PASSING_QUALITY = 3  # Anything lower is a lapse

# Mastery thresholds
MASTERY_REPETITIONS = 3
MASTERY_EASINESS_FACTOR = 2.5

# Review quality ratings - the canonical scale
QUALITY_LABELS = {
    0: "No idea",
    1: "Hard",
    2: "Almost",
    3: "Correct",
    4: "Good",
    5: "Perfect",
}

# Rich style names, one per rating
QUALITY_COLORS = {
    0: "red",
    1: "dark_orange",
    2: "yellow",
    3: "chartreuse3",
    4: "green",
    5: "spring_green2",
}

# As a frozenset for O(1) membership testing
VALID_QUALITIES = frozenset(QUALITY_LABELS)

# Revision session statuses
SESSION_STATUS_PLANNED = "planned"
SESSION_STATUS_DONE = "done"
SESSION_STATUS_SKIPPED = "skipped"
