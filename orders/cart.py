# orders/cart.py
"""
The shopper's cart: an ordered list of lines the browser keeps under
``cart_v1``. The server never prices from it; it only re-checks requested
quantities against live stock before checkout.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Optional

from catalog.services import StockInfo, as_pk, stock_for_options


class CartError(Exception):
    def __init__(self, message, *, reason="invalid", option_id=None):
        super().__init__(message)
        self.reason = reason
        self.option_id = option_id


@dataclass
class CartLine:
    name: str
    quantity: int
    unit_amount: int
    currency: str = "usd"
    option_id: Optional[int] = None
    fragrance_id: Optional[int] = None
    label: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "CartLine":
        if not isinstance(raw, dict):
            raise CartError("Cart line must be an object")
        try:
            quantity = max(1, int(raw.get("quantity") or 1))
            unit_amount = int(raw.get("unit_amount") or 0)
        except (TypeError, ValueError):
            raise CartError("Cart line has a non-numeric quantity or price")
        return cls(
            name=str(raw.get("name") or "Item"),
            quantity=quantity,
            unit_amount=unit_amount,
            currency=str(raw.get("currency") or "usd").lower(),
            option_id=as_pk(raw.get("option_id")),
            fragrance_id=as_pk(raw.get("fragrance_id")),
            label=raw.get("label"),
            image_url=raw.get("image_url"),
        )

    def as_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)
    stock: dict[int, StockInfo] = field(default_factory=dict)

    # ---------- persistence ----------
    @classmethod
    def load(cls, raw, stock: Optional[dict[int, StockInfo]] = None) -> "Cart":
        """Accepts the stored JSON string or an already-decoded list; junk becomes an empty cart."""
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw or "[]")
            except ValueError:
                raw = []
        if not isinstance(raw, list):
            raw = []
        lines = []
        for item in raw:
            try:
                lines.append(CartLine.from_dict(item))
            except CartError:
                continue
        return cls(lines=lines, stock=stock or {})

    def dump(self) -> str:
        return json.dumps([line.as_dict() for line in self.lines])

    def refresh_stock(self) -> None:
        self.stock = stock_for_options(line.option_id for line in self.lines if line.option_id)

    # ---------- stock ----------
    def allocated(self, option_id, *, exclude: Optional[int] = None) -> int:
        return sum(
            line.quantity
            for i, line in enumerate(self.lines)
            if i != exclude and line.option_id == option_id
        )

    def clamp(self, option_id, requested: int, *, allocated: int = 0) -> int:
        """Effective quantity for a request of ``requested`` when ``allocated`` is already in the cart."""
        if option_id is None:
            return requested
        info = self.stock.get(option_id)
        if info is None:
            raise CartError("This option is no longer available", reason="unavailable", option_id=option_id)
        if not info.in_stock:
            raise CartError("This option is out of stock", reason="out_of_stock", option_id=option_id)
        if info.remaining is None:
            return requested
        return min(requested, max(0, info.remaining - allocated))

    # ---------- mutations ----------
    def add(self, line: CartLine) -> int:
        allowed = self.clamp(line.option_id, line.quantity, allocated=self.allocated(line.option_id))
        if allowed <= 0:
            raise CartError("No more of this option is available", reason="sold_out", option_id=line.option_id)
        for existing in self.lines:
            if line.option_id is not None and existing.option_id == line.option_id:
                existing.quantity += allowed
                return allowed
        line.quantity = allowed
        self.lines.append(line)
        return allowed

    def set_quantity(self, index: int, quantity: int) -> int:
        line = self.lines[index]
        requested = max(1, int(quantity))
        allowed = self.clamp(line.option_id, requested, allocated=self.allocated(line.option_id, exclude=index))
        if allowed <= 0:
            raise CartError("No more of this option is available", reason="sold_out", option_id=line.option_id)
        line.quantity = allowed
        return allowed

    def remove(self, index: int) -> CartLine:
        return self.lines.pop(index)

    def clear(self) -> None:
        self.lines = []

    @property
    def subtotal_cents(self) -> int:
        return sum(line.unit_amount * line.quantity for line in self.lines)

    @property
    def currency(self) -> str:
        return self.lines[0].currency if self.lines else "usd"

    # ---------- validation ----------
    def validated(self) -> tuple["Cart", list[dict]]:
        """
        Replay every line against current stock, in order.
        Returns the cart that can actually be checked out plus one issue per changed line.
        """
        fixed = Cart(stock=self.stock)
        issues = []
        for index, line in enumerate(self.lines):
            try:
                allowed = fixed.clamp(line.option_id, line.quantity,
                                      allocated=fixed.allocated(line.option_id))
            except CartError as exc:
                issues.append({"index": index, "option_id": line.option_id, "requested": line.quantity,
                               "allowed": 0, "reason": exc.reason, "message": str(exc)})
                continue
            if allowed < line.quantity:
                issues.append({"index": index, "option_id": line.option_id, "requested": line.quantity,
                               "allowed": allowed, "reason": "clamped" if allowed else "sold_out",
                               "message": f"Only {allowed} available" if allowed else "No more available"})
            if allowed > 0:
                fixed.lines.append(CartLine(**{**asdict(line), "quantity": allowed}))
        return fixed, issues


def validate_cart(raw) -> tuple[Cart, list[dict]]:
    cart = Cart.load(raw)
    cart.refresh_stock()
    return cart.validated()
