"""Structured logging for Zonneplan Battery."""

from .unified_logger import ZonneplanLogger, get_logger

__all__ = ["ZonneplanLogger", "get_logger"]
