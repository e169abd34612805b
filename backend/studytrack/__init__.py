"""Study tracker backend: session timer, streaks and study analytics."""

__version__ = "0.1.0"
