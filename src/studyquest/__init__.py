"""StudyQuest: study tracking with streaks, levels and achievements"""

__version__ = "1.0.0"
