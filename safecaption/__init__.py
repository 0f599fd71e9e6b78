"""SafeCaption: heuristic content moderation for Instagram captions."""

__version__ = "0.1.0"
