"""
Logging configuration and utilities.
"""
from .config import configure_logging, get_election_logger, get_logger

__all__ = ["configure_logging", "get_logger", "get_election_logger"]
