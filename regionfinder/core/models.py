"""Data models for boundaries, region lookups and listings."""
import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

from regionfinder.core.config import LEVELS
from regionfinder.core.normalization import normalize_name


class UnknownLevelError(ValueError):
    """Raised when an administrative level is not one of LEVELS."""


class LocationValidationError(ValueError):
    """Raised when a listing's location does not satisfy its address status."""


class InvalidBoundsError(ValueError):
    """Raised when viewport bounds are inverted or empty."""


def check_level(level: str) -> str:
    if level not in LEVELS:
        raise UnknownLevelError(f"Unknown administrative level: {level!r}")
    return level


@dataclass(frozen=True)
class RegionKey:
    """Canonical lookup key: administrative level plus normalized name."""
    level: str
    name: str

    @classmethod
    def of(cls, level: str, name: Optional[str]) -> "RegionKey":
        return cls(level=level, name=normalize_name(name))


@dataclass
class Boundary:
    """An administrative boundary as stored in the boundary repository."""
    feature_id: str
    level: str
    name: str
    name_fa: Optional[str] = None
    parent: Optional[str] = None
    parent_level: Optional[str] = None
    geometry: Optional[Dict[str, Any]] = None
    bbox: Optional[Tuple[float, float, float, float]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name_fa(self) -> str:
        return self.name_fa or self.name

    def to_feature(self) -> Dict[str, Any]:
        """GeoJSON Feature used to draw the boundary on a map."""
        return {
            "type": "Feature",
            "properties": {
                "name": self.name,
                "nameFa": self.display_name_fa,
                "level": self.level,
            },
            "geometry": self.geometry,
            "bbox": list(self.bbox) if self.bbox else None,
        }


@dataclass(frozen=True)
class OverlayEntry:
    """A higher-trust geometry for one named region, loaded from a static file."""
    level: str
    name: str
    name_fa: Optional[str]
    geometry: Dict[str, Any]
    source: str = ""


@dataclass(frozen=True)
class RegionRef:
    """A region's two language variants, always taken from one entity."""
    name: Optional[str]
    name_fa: Optional[str] = None

    @classmethod
    def from_boundary(cls, boundary: Optional[Boundary]) -> Optional["RegionRef"]:
        if boundary is None:
            return None
        return cls(name=boundary.name, name_fa=boundary.name_fa)

    @classmethod
    def from_overlay(cls, entry: Optional[OverlayEntry]) -> Optional["RegionRef"]:
        if entry is None:
            return None
        return cls(name=entry.name, name_fa=entry.name_fa)


@dataclass
class RegionSet:
    """Administrative regions containing a point. Any field may be None."""
    province: Optional[str] = None
    province_fa: Optional[str] = None
    county: Optional[str] = None
    county_fa: Optional[str] = None
    bakhsh: Optional[str] = None
    bakhsh_fa: Optional[str] = None
    city: Optional[str] = None
    city_fa: Optional[str] = None
    province_source: Optional[str] = None

    def set_province(self, ref: RegionRef, source: str):
        self.province = ref.name
        self.province_fa = ref.name_fa
        self.province_source = source

    def get(self, level: str) -> Optional[str]:
        return getattr(self, check_level(level))

    def get_fa(self, level: str) -> Optional[str]:
        return getattr(self, f"{check_level(level)}_fa")

    def is_empty(self) -> bool:
        return not any((self.province, self.county, self.bakhsh, self.city))

    def same_regions(self, other: "RegionSet") -> bool:
        """Compare names only, ignoring diagnostics."""
        return all(
            getattr(self, attr) == getattr(other, attr)
            for attr in ("province", "province_fa", "county", "county_fa",
                         "bakhsh", "bakhsh_fa", "city", "city_fa")
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "province": self.province,
            "provinceFa": self.province_fa,
            "county": self.county,
            "countyFa": self.county_fa,
            "bakhsh": self.bakhsh,
            "bakhshFa": self.bakhsh_fa,
            "city": self.city,
            "cityFa": self.city_fa,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RegionSet":
        data = data or {}
        return cls(
            province=data.get("province"),
            province_fa=data.get("provinceFa"),
            county=data.get("county"),
            county_fa=data.get("countyFa"),
            bakhsh=data.get("bakhsh"),
            bakhsh_fa=data.get("bakhshFa"),
            city=data.get("city"),
            city_fa=data.get("cityFa"),
        )


@dataclass(frozen=True)
class Bounds:
    """A map viewport rectangle."""
    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def __post_init__(self):
        values = (self.min_lng, self.min_lat, self.max_lng, self.max_lat)
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
            raise InvalidBoundsError(f"Bounds must be finite numbers: {values}")
        if self.min_lng >= self.max_lng or self.min_lat >= self.max_lat:
            raise InvalidBoundsError(
                "Invalid bounds: min values must be less than max values "
                f"({self.min_lng}, {self.min_lat}, {self.max_lng}, {self.max_lat})"
            )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_lng, self.min_lat, self.max_lng, self.max_lat)


@dataclass
class FilterCriteria:
    """Spatial search criteria: named regions and/or a viewport."""
    province: Optional[str] = None
    county: Optional[str] = None
    bakhsh: Optional[str] = None
    city: Optional[str] = None
    bounds: Optional[Bounds] = None

    def named_regions(self) -> Dict[str, str]:
        return {
            level: getattr(self, level).strip()
            for level in LEVELS
            if getattr(self, level) and getattr(self, level).strip()
        }


class AddressStatus(str, Enum):
    EXACT = "exact"
    APPROXIMATE = "approximate"
    UNKNOWN = "unknown"


@dataclass
class FamilyMember:
    name: str
    relationship: str
    role: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class ApproximateRegion:
    province: Optional[str] = None
    section: Optional[str] = None


def _has_coordinates(lng: Optional[float], lat: Optional[float]) -> bool:
    return (
        isinstance(lng, (int, float)) and isinstance(lat, (int, float))
        and math.isfinite(lng) and math.isfinite(lat)
    )


@dataclass
class Listing:
    """A person listing in the directory."""
    name: str
    address: str = ""
    phone: Optional[str] = None
    lng: Optional[float] = None
    lat: Optional[float] = None
    address_status: Optional[AddressStatus] = None
    approximate_region: ApproximateRegion = field(default_factory=ApproximateRegion)
    administrative_region: RegionSet = field(default_factory=RegionSet)
    tags: List[str] = field(default_factory=list)
    family_members: List[FamilyMember] = field(default_factory=list)
    is_active: bool = True
    listing_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_coordinates(self) -> bool:
        return _has_coordinates(self.lng, self.lat)

    def infer_address_status(self) -> AddressStatus:
        """
        The explicit status if set, otherwise derived from the data:
        address text plus coordinates is exact, an approximate province or
        section is approximate, anything else is unknown.
        """
        if self.address_status is not None:
            return AddressStatus(self.address_status)
        if (self.address or "").strip() and self.has_coordinates:
            return AddressStatus.EXACT
        approx = self.approximate_region
        if (approx.province or "").strip() or (approx.section or "").strip():
            return AddressStatus.APPROXIMATE
        return AddressStatus.UNKNOWN

    def validate_location(self) -> AddressStatus:
        """
        Check the location fields against the address status.

        Returns:
            The effective address status

        Raises:
            LocationValidationError: if the invariants of the status are broken
        """
        status = self.infer_address_status()

        if status is AddressStatus.EXACT:
            if not self.has_coordinates:
                raise LocationValidationError("Exact address requires a coordinate pair")
            if not (-180 <= self.lng <= 180 and -90 <= self.lat <= 90):
                raise LocationValidationError(
                    "Coordinates must be [longitude, latitude] with valid ranges"
                )
            if not (self.address or "").strip():
                raise LocationValidationError("Exact address requires address text")
        elif status is AddressStatus.APPROXIMATE:
            if not (self.approximate_region.province or "").strip():
                raise LocationValidationError("Approximate address requires a province")

        return status

    def address_text(self) -> str:
        """Human readable location line for the listing's status."""
        status = self.infer_address_status()
        if status is AddressStatus.EXACT:
            return self.address.strip()
        if status is AddressStatus.APPROXIMATE:
            parts = [self.approximate_region.province, self.approximate_region.section]
            return " - ".join(p.strip() for p in parts if p and p.strip())
        return ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.listing_id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "longitude": self.lng,
            "latitude": self.lat,
            "addressStatus": self.infer_address_status().value,
            "addressText": self.address_text(),
            "approximateRegion": asdict(self.approximate_region),
            "administrativeRegion": self.administrative_region.to_dict(),
            "tags": list(self.tags),
            "familyMembers": [asdict(m) for m in self.family_members],
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
