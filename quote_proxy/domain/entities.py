"""
Domain entities for daily price data.

Core business objects representing closing prices and price series.
These entities are framework-agnostic and immutable once built.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, List, Tuple


@dataclass(frozen=True)
class PricePoint:
    """
    Value object for one trading day's closing price.

    Attributes:
        date: Calendar date of the session
        close: Closing price, finite and non-negative
    """

    date: date
    close: Decimal

    def __post_init__(self):
        """Validate the closing price on creation."""
        if not isinstance(self.close, Decimal):
            raise TypeError(f"close must be a Decimal, got {type(self.close).__name__}")
        if not self.close.is_finite():
            raise ValueError(f"close must be finite: {self.close}")
        if self.close < 0:
            raise ValueError(f"close must be non-negative: {self.close}")

    def to_dict(self) -> dict:
        """Serialize to the wire shape used by the API."""
        return {"date": self.date.isoformat(), "close": float(self.close)}


@dataclass(frozen=True)
class PriceSeries:
    """
    Ordered, duplicate-free sequence of price points.

    Points must be strictly ascending by date. Use ``from_points`` to build
    a series from unsorted input.
    """

    points: Tuple[PricePoint, ...] = field(default_factory=tuple)

    def __post_init__(self):
        points = tuple(self.points)
        object.__setattr__(self, "points", points)

        for previous, current in zip(points, points[1:]):
            if current.date <= previous.date:
                raise ValueError(
                    f"Price points must be strictly ascending by date: "
                    f"{previous.date} followed by {current.date}"
                )

    @classmethod
    def from_points(cls, points: Iterable[PricePoint]) -> "PriceSeries":
        """Build a series, sorting the points ascending by date."""
        return cls(points=tuple(sorted(points, key=lambda point: point.date)))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self.points)

    def to_list(self) -> List[dict]:
        """Serialize every point to its wire shape."""
        return [point.to_dict() for point in self.points]
