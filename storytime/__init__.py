"""
StoryTime Backend

A FastAPI backend for the StoryTime short-fiction app.
Provides story discovery feeds, engagement metrics, and feed actions.
"""

__version__ = "1.0.0"
