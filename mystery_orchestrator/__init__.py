"""
Mystery Orchestrator
Multi-agent generation and validation of murder mystery party games.
"""

__version__ = "0.1.0"
