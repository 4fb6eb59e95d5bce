"""Data models for Zonneplan Battery."""

from .data_models import (
    DailyResult,
    LiveMeasurement,
    Measurement,
    Profile,
    RankingSnapshot,
    TradingMode,
)

__all__ = [
    "DailyResult",
    "LiveMeasurement",
    "Measurement",
    "Profile",
    "RankingSnapshot",
    "TradingMode",
]
