"""Portfolio accounting helpers."""

from __future__ import annotations

from typing import Tuple


def blend_fill(
    current_qty: float,
    average_price: float,
    fill_quantity: float,
    fill_price: float,
) -> Tuple[float, float]:
    """Return the (quantity, average_price) of a holding after a signed fill."""
    if fill_quantity == 0:
        return current_qty, average_price

    new_quantity = current_qty + fill_quantity

    if new_quantity == 0:
        return 0.0, 0.0

    if current_qty == 0:
        return new_quantity, fill_price

    if current_qty * fill_quantity > 0:
        total_size = abs(current_qty) + abs(fill_quantity)
        weighted_price = (
            average_price * abs(current_qty) + fill_price * abs(fill_quantity)
        ) / total_size
        return new_quantity, weighted_price

    # Opposite direction fill (reducing or flipping the position)
    if abs(fill_quantity) < abs(current_qty):
        return new_quantity, average_price

    # Position flipped direction; carry the remainder at the new fill price
    return new_quantity, fill_price


__all__ = ['blend_fill']
