"""boardsync - monday.com board synchronization webhooks and scheduled checks."""

__version__ = "1.4.0"
