"""Core value types shared by the grid engine, exporters and CLI."""

from __future__ import annotations

from dataclasses import dataclass

EXPORT_COLUMNS: tuple[str, ...] = ("Name", "Address", "Stars", "Reviews", "Phone", "Hours", "Website")


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A WGS84 coordinate; equality is exact float equality."""

    lat: float
    lon: float

    def __str__(self) -> str:
        return f"({self.lat:.6f}, {self.lon:.6f})"


@dataclass(frozen=True, slots=True)
class SearchTask:
    """One sub-search dispatched for a single grid point."""

    center: GeoPoint
    query: str
    radius_km: float


@dataclass(frozen=True, slots=True)
class Record:
    """A single extracted place.

    Optional attributes are ``None`` when the listing did not expose them,
    so an empty string always means the site returned an empty value.
    """

    name: str
    address: str
    rating: float
    review_count: int
    coordinates: GeoPoint
    hours: str | None = None
    phone: str | None = None
    website: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.address)

    def as_row(self) -> dict[str, str]:
        """Flatten into the fixed export columns."""

        return {
            "Name": self.name,
            "Address": self.address,
            "Stars": f"{self.rating:.1f}",
            "Reviews": str(int(self.review_count)),
            "Phone": self.phone or "",
            "Hours": self.hours or "",
            "Website": self.website or "",
        }


__all__ = ["EXPORT_COLUMNS", "GeoPoint", "Record", "SearchTask"]
