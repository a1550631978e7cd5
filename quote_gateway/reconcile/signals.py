from __future__ import annotations

from typing import Any, Mapping, Sequence

from quote_gateway.schemas.quote import VolumeSignal

RVOL_THRESHOLD = 1.2


def vwap(history: Sequence[Mapping[str, Any]]) -> float | None:
    if not history:
        return None
    total_volume = sum(point["volume"] for point in history)
    if total_volume <= 0:
        return None
    return sum(point["close"] * point["volume"] for point in history) / total_volume


def average_volume(history: Sequence[Mapping[str, Any]]) -> float:
    return sum(point["volume"] for point in history) / (len(history) or 1)


def relative_volume(current_volume: float, historical_average: float) -> float:
    return current_volume / (historical_average or 1)


def volume_signal(price: float, vwap_value: float | None, rvol: float) -> VolumeSignal:
    if vwap_value and rvol > RVOL_THRESHOLD:
        if price > vwap_value:
            return VolumeSignal.BULLISH
        if price < vwap_value:
            return VolumeSignal.BEARISH
    return VolumeSignal.NEUTRAL
