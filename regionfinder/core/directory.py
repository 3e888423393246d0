"""Directory operations: region lookups, listing writes and listing search."""
import math
from typing import Any, Dict, Iterable, List, Optional

from regionfinder.core.config import (
    BAKHSH, COUNTY, DEFAULT_PAGE_LIMIT, LEVELS, MAX_PAGE_LIMIT,
    NEARBY_DEFAULT_DISTANCE_M, PROVINCE,
)
from regionfinder.core.context import BoundaryContext
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.core.filters import BoundaryFilterBuilder, SpatialPredicate
from regionfinder.core.fuzzy import fuzzy_match
from regionfinder.core.models import (
    Boundary, FilterCriteria, Listing, LocationValidationError, RegionSet, check_level,
)
from regionfinder.core.normalization import name_variants
from regionfinder.core.parents import link_boundary_parents as _link_boundary_parents
from regionfinder.core.proximity import find_nearest_listings, search_window
from regionfinder.core.resolver import RegionResolver
from regionfinder.utils.logging import log_error, log_structured
from regionfinder.utils.timing import Timer


def resolve_regions_for_point(context: BoundaryContext, longitude: float, latitude: float) -> RegionSet:
    """Administrative regions containing a coordinate."""
    return RegionResolver(context).resolve(longitude, latitude)


def build_spatial_filter(context: BoundaryContext, criteria: FilterCriteria) -> Optional[SpatialPredicate]:
    """Spatial predicate for a named region or viewport, or None."""
    return BoundaryFilterBuilder(context).build_filter(criteria)


def _unique_by_persian_name(boundaries: Iterable[Boundary]) -> List[Boundary]:
    seen = set()
    unique = []
    for boundary in boundaries:
        key = (boundary.name_fa or boundary.name).strip()
        if key in seen:
            continue
        seen.add(key)
        unique.append(boundary)
    unique.sort(key=lambda b: (b.display_name_fa.casefold(), b.name.casefold()))
    return unique


def _region_entry(boundary: Boundary) -> Dict[str, str]:
    return {
        "name": boundary.name,
        "nameFa": boundary.display_name_fa,
        "level": boundary.level,
    }


def list_provinces(context: BoundaryContext) -> List[Dict[str, str]]:
    """All provinces, one per Persian name, sorted by Persian name."""
    provinces = context.store.find_boundaries_by_level(PROVINCE)
    return [_region_entry(b) for b in _unique_by_persian_name(provinces)]


def list_sections(context: BoundaryContext, province: str) -> List[Dict[str, str]]:
    """
    Counties and bakhsh of a province, for section pickers.

    Counties are matched by their stored parent against every spelling of the
    province; bakhsh are matched by their parent against those counties.
    Entries are unique by Persian name and sorted by it.
    """
    if not province or not province.strip():
        return []

    match = context.store.find_boundary_by_name(PROVINCE, province, with_geometry=False)
    parent_names = name_variants(province, *((match.name, match.name_fa) if match else ()))

    counties = context.store.find_children(COUNTY, parent_names)
    county_names = name_variants(*(n for c in counties for n in (c.name, c.name_fa)))
    bakhsh = context.store.find_children(BAKHSH, county_names) if county_names else []

    sections = _unique_by_persian_name(counties + bakhsh)
    log_structured("debug", "Sections listed", province=province,
                   counties=len(counties), bakhsh=len(bakhsh), unique=len(sections))
    return [_region_entry(b) for b in sections]


def get_boundary_feature(context: BoundaryContext, level: str, name: str) -> Optional[Dict[str, Any]]:
    """
    GeoJSON Feature for drawing a named region.

    Uses the same geometry sources, in the same order, as the filter builder,
    so the drawn outline is the one listings are filtered by.
    """
    boundary = BoundaryFilterBuilder(context).region_boundary(level, name.strip())
    if boundary is None:
        return None
    return boundary.to_feature()


def search_region_names(
    context: BoundaryContext,
    query: str,
    level: Optional[str] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    """
    Fuzzy suggestions over stored boundary names.

    Both language variants are searched; each boundary appears once with its
    best score.
    """
    levels = (check_level(level),) if level else LEVELS
    boundaries: List[Boundary] = []
    for lvl in levels:
        boundaries.extend(context.store.find_boundaries_by_level(lvl))

    choices: List[str] = []
    owners: List[int] = []
    for i, boundary in enumerate(boundaries):
        for name in (boundary.name, boundary.name_fa):
            if name:
                choices.append(name)
                owners.append(i)

    best: Dict[int, float] = {}
    for _, score, idx in fuzzy_match(query, choices, limit=len(choices) or 1):
        owner = owners[idx]
        best[owner] = max(best.get(owner, 0.0), score)

    ranked = sorted(best.items(), key=lambda item: (-item[1], boundaries[item[0]].name))
    return [
        {**_region_entry(boundaries[i]), "score": round(score, 3)}
        for i, score in ranked[:limit]
    ]


def _stamp_regions(context: BoundaryContext, listing: Listing):
    if listing.has_coordinates:
        listing.administrative_region = resolve_regions_for_point(context, listing.lng, listing.lat)
    else:
        listing.administrative_region = RegionSet()


def create_listing(context: BoundaryContext, listing: Listing) -> Listing:
    """
    Validate, stamp the region snapshot and persist a new listing.

    Raises:
        LocationValidationError: if the location does not fit the address status
    """
    listing.validate_location()
    _stamp_regions(context, listing)
    context.store.insert_listing(listing)
    log_structured("info", "Listing created", listing_id=listing.listing_id,
                   province=listing.administrative_region.province)
    return listing


def update_listing_location(
    context: BoundaryContext,
    listing_id: str,
    lng: float,
    lat: float,
    address: Optional[str] = None,
) -> Optional[Listing]:
    """
    Move a listing and restamp its region snapshot.

    The address status is re-inferred from the new location.

    Returns:
        The updated listing, or None if no listing has that id

    Raises:
        LocationValidationError: if the new location is not valid
    """
    listing = context.store.get_listing(listing_id)
    if listing is None:
        return None

    listing.lng = lng
    listing.lat = lat
    if address is not None:
        listing.address = address
    listing.address_status = None
    listing.validate_location()

    _stamp_regions(context, listing)
    context.store.update_listing(listing)
    return listing


def find_listings(
    context: BoundaryContext,
    criteria: Optional[FilterCriteria] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    relationship: Optional[str] = None,
    is_active: Optional[bool] = True,
) -> Dict[str, Any]:
    """
    Search listings by region or viewport plus attribute filters.

    Args:
        context: Loaded reference data
        criteria: Named regions and/or viewport; None for no spatial scope
        page: 1-based page number
        limit: Page size, capped at MAX_PAGE_LIMIT
        search: Substring matched against name, address and phone
        tag: Exact tag
        relationship: Relationship of at least one family member
        is_active: Active flag to match, or None for all

    Returns:
        {"listings": [...], "pagination": {...}}
    """
    page = max(int(page), 1)
    limit = min(max(int(limit), 1), MAX_PAGE_LIMIT)

    predicate = build_spatial_filter(context, criteria) if criteria is not None else None
    listings, total = context.store.find_listings(
        predicate=predicate,
        search=search.strip() if search and search.strip() else None,
        tag=tag,
        relationship=relationship,
        is_active=is_active,
        offset=(page - 1) * limit,
        limit=limit,
    )

    total_pages = math.ceil(total / limit) if total else 0
    return {
        "listings": listings,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
    }


def find_nearby_listings(
    context: BoundaryContext,
    lng: float,
    lat: float,
    max_distance_m: float = NEARBY_DEFAULT_DISTANCE_M,
    is_active: Optional[bool] = True,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Located listings within a great-circle distance of a point, nearest first.

    Candidates come from a bounding-window query and are then checked with
    the haversine distance. Listings without coordinates never match.

    Returns:
        [{"listing": Listing, "distanceMeters": float}, ...]

    Raises:
        LocationValidationError: if the coordinate is out of range
        ValueError: if max_distance_m is not positive
    """
    if not (-180 <= lng <= 180 and -90 <= lat <= 90):
        raise LocationValidationError(
            "Coordinates must be [longitude, latitude] with valid ranges"
        )
    if max_distance_m <= 0:
        raise ValueError(f"max_distance_m must be positive, got {max_distance_m}")

    max_distance_km = max_distance_m / 1000
    candidates = context.store.find_listings_in_bounds(
        search_window(lng, lat, max_distance_km), is_active=is_active
    )
    nearest = find_nearest_listings(lng, lat, candidates, max_distance_km=max_distance_km, limit=limit)

    log_structured("debug", "Nearby listings found", lng=lng, lat=lat,
                   max_distance_m=max_distance_m, candidates=len(candidates), found=len(nearest))
    return [
        {"listing": listing, "distanceMeters": round(distance_km * 1000, 1)}
        for listing, distance_km in nearest
    ]


@Timer("restamp_listing_regions", level="info")
def restamp_listing_regions(
    context: BoundaryContext,
    dry_run: bool = False,
    listings: Optional[Iterable[Listing]] = None,
) -> Dict[str, int]:
    """
    Recompute the region snapshot of every located listing.

    Args:
        context: Loaded reference data
        dry_run: Count changes without writing them
        listings: Listings to process (default: every located listing)

    Returns:
        Counts of updated, unchanged, not_found and errors
    """
    if listings is None:
        listings = context.store.iter_located_listings()

    resolver = RegionResolver(context)
    counts = {"updated": 0, "unchanged": 0, "not_found": 0, "errors": 0}

    for listing in listings:
        try:
            regions = resolver.resolve(listing.lng, listing.lat)
            if regions.is_empty():
                counts["not_found"] += 1
                continue
            if regions.same_regions(listing.administrative_region):
                counts["unchanged"] += 1
                continue
            if not dry_run:
                context.store.set_administrative_region(listing.listing_id, regions)
            counts["updated"] += 1
        except Exception as e:
            counts["errors"] += 1
            log_error(e, {
                "module": "directory",
                "function": "restamp_listing_regions",
                "listing_id": listing.listing_id,
            })

    log_structured("info", "Listing regions restamped", dry_run=dry_run, **counts)
    return counts


def link_boundary_parents(store: DuckDBStore, dry_run: bool = False) -> Dict[str, Dict[str, int]]:
    """Fill missing county/bakhsh parent links from containing boundaries."""
    return _link_boundary_parents(store, dry_run=dry_run)
