"""Encoded polyline decoding (Google / Valhalla format)."""

from __future__ import annotations


def decode_polyline(encoded: str, precision: int = 5) -> list[list[float]]:
    """Decode an encoded polyline into [lon, lat] pairs.

    Google uses precision 5, Valhalla precision 6. Raises ValueError on a
    truncated encoding.
    """
    coords: list[list[float]] = []
    if not encoded:
        return coords

    index = 0
    lat = 0
    lon = 0
    length = len(encoded)
    factor = float(10**precision)

    def next_value() -> int:
        nonlocal index
        result = 0
        shift = 0
        while True:
            if index >= length:
                msg = "Invalid polyline encoding"
                raise ValueError(msg)
            b = ord(encoded[index]) - 63
            index += 1
            result |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        if result & 1:
            return ~(result >> 1)
        return result >> 1

    while index < length:
        lat += next_value()
        lon += next_value()
        coords.append([lon / factor, lat / factor])

    return coords
