"""Simulated order fills for paper trading."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class OrderRequest:
    symbol: str
    side: str
    quantity: float
    price: float
    order_type: str = 'MARKET'


@dataclass
class OrderResult:
    order_id: str
    status: str
    filled_quantity: float
    filled_price: float
    raw: Dict[str, object] = field(default_factory=dict)


class PaperOrderManager:
    """Fills every order immediately and completely at the requested price."""

    def __init__(self, prefix: str = 'paper') -> None:
        self._prefix = prefix
        self._id_counter = 0
        self._lock = asyncio.Lock()

    async def submit(self, request: OrderRequest) -> OrderResult:
        if request.quantity <= 0:
            raise ValueError(f'Order quantity must be positive, got {request.quantity}')
        if request.price <= 0:
            raise ValueError(f'Order price must be positive, got {request.price}')
        async with self._lock:
            self._id_counter += 1
            order_id = f'{self._prefix}-{self._id_counter}'
        return OrderResult(
            order_id=order_id,
            status='FILLED',
            filled_quantity=float(request.quantity),
            filled_price=float(request.price),
            raw={'simulated': True, 'side': request.side.upper(), 'symbol': request.symbol},
        )

    @property
    def orders_submitted(self) -> int:
        return self._id_counter


__all__ = ['OrderRequest', 'OrderResult', 'PaperOrderManager']
