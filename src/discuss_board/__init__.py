"""Discuss Board - discussion board backend.

Members write posts and comments, moderators act on reports, and
administrators manage accounts, taxonomy and compliance logs.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
