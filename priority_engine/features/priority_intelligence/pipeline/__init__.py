"""
Pipeline components for priority intelligence.

Messages flow one way: scoring, then digest organization and filtering.
"""

__all__ = ["digest", "scoring"]
