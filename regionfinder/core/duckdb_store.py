"""DuckDB storage layer for boundaries and listings."""
import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import duckdb
import geopandas as gpd
import pandas as pd
from shapely import wkb
from shapely.errors import ShapelyError
from shapely.geometry import Point, mapping, shape

from regionfinder.core.config import (
    BAKHSH, CITY, COUNTY, DUCKDB_PATH, LEVELS, PROVINCE,
)
from regionfinder.core.geometry import geometry_bbox, is_valid_bbox
from regionfinder.core.models import (
    AddressStatus, ApproximateRegion, Boundary, Bounds, FamilyMember, Listing,
    RegionSet, check_level,
)
from regionfinder.core.normalization import normalize_name
from regionfinder.utils.logging import log_structured

BOUNDARY_COLUMNS = (
    "feature_id, level, name, name_fa, parent, parent_level, "
    "min_lng, min_lat, max_lng, max_lat, metadata"
)

LISTING_COLUMNS = (
    "listing_id, name, address, phone, lng, lat, address_status, "
    "approx_province, approx_section, "
    "region_province, region_province_fa, region_county, region_county_fa, "
    "region_bakhsh, region_bakhsh_fa, region_city, region_city_fa, "
    "tags, family_members, is_active, created_at, updated_at"
)

# Normalized copies of the region snapshot, matched by attribute filters
REGION_NORM_COLUMNS = tuple(
    f"region_{level}{suffix}_norm" for level in LEVELS for suffix in ("", "_fa")
)

# tags is bound as a typed list so an empty list is accepted
LISTING_PLACEHOLDERS = ", ".join(
    "?::VARCHAR[]" if column.strip() == "tags" else "?" for column in LISTING_COLUMNS.split(",")
)

# Order used when several boundaries of one level match: smallest bbox first
BBOX_AREA_ORDER = "(max_lng - min_lng) * (max_lat - min_lat) ASC, name ASC, feature_id ASC"


def _clean(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, (str, list, dict)) and pd.isna(value)):
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "nan"):
        return None
    return text


def _geometry_to_storage(geometry: Any) -> Tuple[Optional[str], Optional[str]]:
    """WKB hex and GeoJSON text for a geometry; (None, None) if unusable."""
    if geometry is None:
        return None, None
    try:
        geom = geometry if hasattr(geometry, "geom_type") else shape(geometry)
    except (ShapelyError, ValueError, TypeError, AttributeError, KeyError, IndexError):
        return None, None
    if geom.is_empty or geom.geom_type not in ("Polygon", "MultiPolygon"):
        return None, None
    return wkb.dumps(geom, hex=True), json.dumps(mapping(geom))


class DuckDBStore:
    """DuckDB storage manager for boundaries and listings."""

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        """
        Initialize DuckDB connection.

        Args:
            db_path: Path to DuckDB database file, or ":memory:"
        """
        self.db_path = db_path or DUCKDB_PATH
        if str(self.db_path) != ":memory:":
            self.db_path = Path(self.db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = duckdb.connect(str(self.db_path))
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS boundaries (
                feature_id VARCHAR PRIMARY KEY,
                level VARCHAR NOT NULL,
                name VARCHAR NOT NULL,
                name_fa VARCHAR,
                name_norm VARCHAR,
                name_fa_norm VARCHAR,
                parent VARCHAR,
                parent_norm VARCHAR,
                parent_level VARCHAR,
                geometry_wkb VARCHAR,
                geometry_geojson TEXT,
                min_lng DOUBLE NOT NULL,
                min_lat DOUBLE NOT NULL,
                max_lng DOUBLE NOT NULL,
                max_lat DOUBLE NOT NULL,
                metadata TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS listings (
                listing_id VARCHAR PRIMARY KEY,
                name VARCHAR NOT NULL,
                address VARCHAR,
                phone VARCHAR,
                lng DOUBLE,
                lat DOUBLE,
                address_status VARCHAR,
                approx_province VARCHAR,
                approx_section VARCHAR,
                region_province VARCHAR,
                region_province_fa VARCHAR,
                region_county VARCHAR,
                region_county_fa VARCHAR,
                region_bakhsh VARCHAR,
                region_bakhsh_fa VARCHAR,
                region_city VARCHAR,
                region_city_fa VARCHAR,
                region_province_norm VARCHAR,
                region_province_fa_norm VARCHAR,
                region_county_norm VARCHAR,
                region_county_fa_norm VARCHAR,
                region_bakhsh_norm VARCHAR,
                region_bakhsh_fa_norm VARCHAR,
                region_city_norm VARCHAR,
                region_city_fa_norm VARCHAR,
                tags VARCHAR[],
                family_members TEXT,
                is_active BOOLEAN DEFAULT TRUE,
                created_at TIMESTAMP,
                updated_at TIMESTAMP
            )
        """)

        # Only columns that are never updated in place are indexed
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_boundaries_level_name ON boundaries(level, name)")
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_boundaries_level_norm ON boundaries(level, name_norm)")

    # ------------------------------------------------------------------
    # Boundaries: writes
    # ------------------------------------------------------------------

    def add_boundary(self, boundary: Boundary, replace: bool = True) -> Boundary:
        """
        Store one boundary.

        The bbox is taken from the boundary or computed from its geometry.
        Geometry that cannot be parsed is kept out of the WKB column so
        spatial queries treat it as "no match".

        Raises:
            ValueError: if the level is unknown or no valid bbox is available
        """
        check_level(boundary.level)
        geometry_hex, geometry_json = _geometry_to_storage(boundary.geometry)

        bbox = boundary.bbox or geometry_bbox(boundary.geometry)
        if not is_valid_bbox(bbox):
            raise ValueError(
                f"Boundary {boundary.name!r} ({boundary.level}) has no valid bbox: {bbox}"
            )
        bbox = tuple(float(v) for v in bbox)

        parent_level = boundary.parent_level if boundary.parent_level in LEVELS else None
        with self.conn.cursor() as cur:
            if replace:
                cur.execute("DELETE FROM boundaries WHERE feature_id = ?", [boundary.feature_id])
            cur.execute("""
                INSERT INTO boundaries
                (feature_id, level, name, name_fa, name_norm, name_fa_norm,
                 parent, parent_norm, parent_level, geometry_wkb, geometry_geojson,
                 min_lng, min_lat, max_lng, max_lat, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, [
                boundary.feature_id,
                boundary.level,
                boundary.name,
                boundary.name_fa,
                normalize_name(boundary.name),
                normalize_name(boundary.name_fa) or None,
                boundary.parent,
                normalize_name(boundary.parent) or None,
                parent_level,
                geometry_hex,
                geometry_json,
                *bbox,
                json.dumps(boundary.metadata or {}, ensure_ascii=False, default=str),
                datetime.now(),
            ])

        boundary.bbox = bbox
        return boundary

    def ingest_geodataframe(
        self,
        level: str,
        gdf: gpd.GeoDataFrame,
        name_field: str = "name",
        name_fa_field: str = "nameFa",
        parent_field: str = "parent",
        parent_level_field: str = "parentLevel",
        replace_level: bool = False,
    ) -> int:
        """
        Ingest boundary features of one level from a GeoDataFrame.

        Args:
            level: Administrative level of every feature
            gdf: GeoDataFrame to ingest
            name_field: Field containing the primary name
            name_fa_field: Field containing the Persian name
            parent_field: Field containing the parent region name
            parent_level_field: Field containing the parent level
            replace_level: Delete existing boundaries of this level first

        Returns:
            Number of boundaries stored
        """
        check_level(level)

        # Ensure WGS84
        if gdf.crs is not None and gdf.crs != "EPSG:4326":
            gdf = gdf.to_crs("EPSG:4326")

        if replace_level:
            with self.conn.cursor() as cur:
                cur.execute("DELETE FROM boundaries WHERE level = ?", [level])

        stored = 0
        skipped = 0
        for idx, row in gdf.iterrows():
            if "feature_id" in row and _clean(row["feature_id"]):
                feature_id = str(row["feature_id"])
            elif "id" in row and _clean(row["id"]):
                feature_id = str(row["id"])
            else:
                feature_id = f"{level}-{idx}"

            name = _clean(row.get(name_field)) or _clean(row.get(name_fa_field))
            if not name:
                skipped += 1
                continue

            geometry = row.geometry
            metadata = {
                # numpy scalars become plain Python values for JSON
                k: v.item() if hasattr(v, "item") else v
                for k, v in row.items()
                if k not in ("geometry", name_field, name_fa_field, parent_field, parent_level_field)
                and _clean(v) is not None
            }

            try:
                self.add_boundary(Boundary(
                    feature_id=f"{level}:{feature_id}",
                    level=level,
                    name=name,
                    name_fa=_clean(row.get(name_fa_field)),
                    parent=_clean(row.get(parent_field)),
                    parent_level=_clean(row.get(parent_level_field)),
                    geometry=geometry if geometry is not None and not geometry.is_empty else None,
                    bbox=None,
                    metadata=metadata,
                ))
                stored += 1
            except ValueError as e:
                skipped += 1
                log_structured("warning", "Boundary skipped", region_level=level, name=name, reason=str(e))

        log_structured("info", "Boundaries ingested", region_level=level, stored=stored, skipped=skipped)
        return stored

    def update_parent(self, feature_id: str, parent: str, parent_level: str):
        """Set the stored parent linkage of a boundary."""
        check_level(parent_level)
        with self.conn.cursor() as cur:
            cur.execute("""
                UPDATE boundaries
                SET parent = ?, parent_norm = ?, parent_level = ?
                WHERE feature_id = ?
            """, [parent, normalize_name(parent), parent_level, feature_id])

    # ------------------------------------------------------------------
    # Boundaries: reads
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_boundary(row: Sequence, geometry_json: Optional[str] = None) -> Boundary:
        geometry = None
        if geometry_json:
            try:
                geometry = json.loads(geometry_json)
            except ValueError:
                geometry = None
        return Boundary(
            feature_id=row[0],
            level=row[1],
            name=row[2],
            name_fa=row[3],
            parent=row[4],
            parent_level=row[5],
            bbox=(row[6], row[7], row[8], row[9]),
            metadata=json.loads(row[10]) if row[10] else {},
            geometry=geometry,
        )

    @staticmethod
    def _load_shape(geometry_hex: Optional[str]):
        if not geometry_hex:
            return None
        try:
            return wkb.loads(geometry_hex, hex=True)
        except (ShapelyError, ValueError, TypeError):
            return None

    def _spatial_candidates(self, where: str, params: List[Any]) -> List[tuple]:
        with self.conn.cursor() as cur:
            return cur.execute(f"""
                SELECT {BOUNDARY_COLUMNS}, geometry_wkb, geometry_geojson
                FROM boundaries
                WHERE geometry_wkb IS NOT NULL AND {where}
                ORDER BY {BBOX_AREA_ORDER}
            """, params).fetchall()

    def find_containing_region(self, lng: float, lat: float, level: str = PROVINCE) -> Optional[Boundary]:
        """
        Boundary of a level whose geometry intersects the point.

        Rows are pre-filtered by bbox in SQL and tested exactly with shapely.
        Malformed geometries are skipped. When several boundaries match, the
        one with the smallest bbox wins.
        """
        check_level(level)
        point = Point(lng, lat)
        rows = self._spatial_candidates(
            "level = ? AND min_lng <= ? AND max_lng >= ? AND min_lat <= ? AND max_lat >= ?",
            [level, lng, lng, lat, lat],
        )
        for row in rows:
            geom = self._load_shape(row[11])
            if geom is None:
                continue
            try:
                if geom.intersects(point):
                    return self._row_to_boundary(row, row[12])
            except ShapelyError as e:
                log_structured("debug", "Skipping malformed boundary geometry",
                               feature_id=row[0], reason=str(e))
        return None

    def find_all_containing_regions(self, lng: float, lat: float) -> Dict[str, Optional[Boundary]]:
        """Containing boundary for each level, looked up independently."""
        return {
            level: self.find_containing_region(lng, lat, level)
            for level in (PROVINCE, COUNTY, BAKHSH, CITY)
        }

    def find_boundary_by_name(self, level: str, name: str, with_geometry: bool = True) -> Optional[Boundary]:
        """
        Boundary of a level by name or Persian name.

        Exact raw matches are preferred over normalized matches.
        """
        check_level(level)
        if not name or not name.strip():
            return None
        raw = name.strip()
        norm = normalize_name(name)
        geometry_col = "geometry_geojson" if with_geometry else "NULL"

        with self.conn.cursor() as cur:
            row = cur.execute(f"""
                SELECT {BOUNDARY_COLUMNS}, {geometry_col}
                FROM boundaries
                WHERE level = ?
                  AND (name = ? OR name_fa = ? OR name_norm = ? OR name_fa_norm = ?)
                ORDER BY (name = ? OR name_fa = ?) DESC,
                         (geometry_wkb IS NOT NULL) DESC,
                         feature_id ASC
                LIMIT 1
            """, [level, raw, raw, norm, norm, raw, raw]).fetchone()

        if row:
            return self._row_to_boundary(row, row[11])
        return None

    def find_boundaries_by_level(self, level: str, with_geometry: bool = False) -> List[Boundary]:
        """All boundaries of a level, ordered by Persian then primary name."""
        check_level(level)
        geometry_col = "geometry_geojson" if with_geometry else "NULL"
        with self.conn.cursor() as cur:
            rows = cur.execute(f"""
                SELECT {BOUNDARY_COLUMNS}, {geometry_col}
                FROM boundaries
                WHERE level = ?
                ORDER BY COALESCE(name_fa, name) ASC, feature_id ASC
            """, [level]).fetchall()
        return [self._row_to_boundary(row, row[11]) for row in rows]

    def provinces_with_bbox(self) -> List[Boundary]:
        """Province boundaries whose stored bbox satisfies the bbox invariant."""
        return [
            b for b in self.find_boundaries_by_level(PROVINCE)
            if is_valid_bbox(b.bbox)
        ]

    def find_children(self, level: str, parent_names: Sequence[str]) -> List[Boundary]:
        """Boundaries of a level whose stored parent matches any of the names."""
        check_level(level)
        raw = [n.strip() for n in parent_names if n and n.strip()]
        norm = sorted({normalize_name(n) for n in raw})
        if not raw:
            return []

        raw_marks = ", ".join("?" for _ in raw)
        norm_marks = ", ".join("?" for _ in norm)
        with self.conn.cursor() as cur:
            rows = cur.execute(f"""
                SELECT {BOUNDARY_COLUMNS}, NULL
                FROM boundaries
                WHERE level = ?
                  AND (parent IN ({raw_marks}) OR parent_norm IN ({norm_marks}))
                ORDER BY COALESCE(name_fa, name) ASC, feature_id ASC
            """, [level, *raw, *norm]).fetchall()
        return [self._row_to_boundary(row) for row in rows]

    def find_orphans(self, level: str) -> List[Boundary]:
        """Boundaries of a level with no usable parent linkage."""
        check_level(level)
        with self.conn.cursor() as cur:
            rows = cur.execute(f"""
                SELECT {BOUNDARY_COLUMNS}, geometry_geojson
                FROM boundaries
                WHERE level = ?
                  AND (parent IS NULL OR trim(parent) = '' OR lower(parent) = 'null')
                ORDER BY feature_id ASC
            """, [level]).fetchall()
        return [self._row_to_boundary(row, row[11]) for row in rows]

    def count_boundaries(self, level: Optional[str] = None) -> int:
        with self.conn.cursor() as cur:
            if level:
                return cur.execute("SELECT COUNT(*) FROM boundaries WHERE level = ?", [level]).fetchone()[0]
            return cur.execute("SELECT COUNT(*) FROM boundaries").fetchone()[0]

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    @staticmethod
    def _listing_params(listing: Listing) -> List[Any]:
        region = listing.administrative_region
        return [
            listing.listing_id,
            listing.name,
            listing.address,
            listing.phone,
            listing.lng,
            listing.lat,
            listing.infer_address_status().value,
            listing.approximate_region.province,
            listing.approximate_region.section,
            region.province, region.province_fa,
            region.county, region.county_fa,
            region.bakhsh, region.bakhsh_fa,
            region.city, region.city_fa,
            list(listing.tags),
            json.dumps([vars(m) for m in listing.family_members], ensure_ascii=False),
            listing.is_active,
            listing.created_at,
            listing.updated_at,
        ]

    @staticmethod
    def _row_to_listing(row: Sequence) -> Listing:
        members = json.loads(row[18]) if row[18] else []
        return Listing(
            listing_id=row[0],
            name=row[1],
            address=row[2] or "",
            phone=row[3],
            lng=row[4],
            lat=row[5],
            address_status=AddressStatus(row[6]) if row[6] else None,
            approximate_region=ApproximateRegion(province=row[7], section=row[8]),
            administrative_region=RegionSet(
                province=row[9], province_fa=row[10],
                county=row[11], county_fa=row[12],
                bakhsh=row[13], bakhsh_fa=row[14],
                city=row[15], city_fa=row[16],
            ),
            tags=list(row[17] or []),
            family_members=[FamilyMember(**m) for m in members],
            is_active=bool(row[19]),
            created_at=row[20],
            updated_at=row[21],
        )

    @staticmethod
    def _region_norm_params(region: RegionSet) -> List[Optional[str]]:
        """Values for REGION_NORM_COLUMNS, in column order."""
        params = []
        for level in LEVELS:
            params.append(normalize_name(region.get(level)) or None)
            params.append(normalize_name(region.get_fa(level)) or None)
        return params

    def insert_listing(self, listing: Listing) -> Listing:
        """Persist a new listing, assigning its id and timestamps."""
        now = datetime.now()
        listing.listing_id = listing.listing_id or uuid.uuid4().hex
        listing.created_at = listing.created_at or now
        listing.updated_at = now
        columns = ", ".join((LISTING_COLUMNS, *REGION_NORM_COLUMNS))
        placeholders = ", ".join((LISTING_PLACEHOLDERS, *("?" for _ in REGION_NORM_COLUMNS)))
        with self.conn.cursor() as cur:
            cur.execute(
                f"INSERT INTO listings ({columns}) VALUES ({placeholders})",
                self._listing_params(listing) + self._region_norm_params(listing.administrative_region),
            )
        return listing

    def update_listing(self, listing: Listing) -> Listing:
        """Overwrite every stored field of an existing listing."""
        if not listing.listing_id:
            raise ValueError("Listing has no id")
        listing.updated_at = datetime.now()
        columns = [c.strip() for c in LISTING_COLUMNS.split(",")][1:] + list(REGION_NORM_COLUMNS)
        assignments = ", ".join(
            f"{c} = ?::VARCHAR[]" if c == "tags" else f"{c} = ?" for c in columns
        )
        params = self._listing_params(listing)[1:] + self._region_norm_params(listing.administrative_region)
        with self.conn.cursor() as cur:
            cur.execute(
                f"UPDATE listings SET {assignments} WHERE listing_id = ?",
                params + [listing.listing_id],
            )
        return listing

    def set_administrative_region(self, listing_id: str, region: RegionSet):
        """Write only the denormalized region snapshot of a listing."""
        columns = [f"region_{level}{suffix}" for level in LEVELS for suffix in ("", "_fa")]
        assignments = ", ".join(f"{c} = ?" for c in columns + list(REGION_NORM_COLUMNS))
        snapshot = []
        for level in LEVELS:
            snapshot.extend([region.get(level), region.get_fa(level)])
        with self.conn.cursor() as cur:
            cur.execute(
                f"UPDATE listings SET {assignments}, updated_at = ? WHERE listing_id = ?",
                snapshot + self._region_norm_params(region) + [datetime.now(), listing_id],
            )

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        with self.conn.cursor() as cur:
            row = cur.execute(
                f"SELECT {LISTING_COLUMNS} FROM listings WHERE listing_id = ?",
                [listing_id],
            ).fetchone()
        return self._row_to_listing(row) if row else None

    def iter_located_listings(self) -> Iterator[Listing]:
        """Listings that carry a coordinate pair."""
        with self.conn.cursor() as cur:
            rows = cur.execute(f"""
                SELECT {LISTING_COLUMNS} FROM listings
                WHERE lng IS NOT NULL AND lat IS NOT NULL
                ORDER BY created_at ASC
            """).fetchall()
        for row in rows:
            yield self._row_to_listing(row)

    def find_listings_in_bounds(self, bounds: Bounds, is_active: Optional[bool] = True) -> List[Listing]:
        """Located listings inside a rectangle, edges included."""
        min_lng, min_lat, max_lng, max_lat = bounds.as_tuple()
        where = "lng BETWEEN ? AND ? AND lat BETWEEN ? AND ?"
        params: List[Any] = [min_lng, max_lng, min_lat, max_lat]
        if is_active is not None:
            where += " AND is_active = ?"
            params.append(is_active)

        with self.conn.cursor() as cur:
            rows = cur.execute(
                f"SELECT {LISTING_COLUMNS} FROM listings WHERE {where}", params
            ).fetchall()
        return [self._row_to_listing(row) for row in rows]

    def count_located_listings(self) -> int:
        with self.conn.cursor() as cur:
            return cur.execute(
                "SELECT COUNT(*) FROM listings WHERE lng IS NOT NULL AND lat IS NOT NULL"
            ).fetchone()[0]

    def find_listings(
        self,
        predicate=None,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        relationship: Optional[str] = None,
        is_active: Optional[bool] = True,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Listing], int]:
        """
        Listings matching a spatial predicate and attribute filters.

        The predicate contributes an SQL clause (a bbox pre-filter for
        geometry predicates) and is then applied exactly to each candidate.

        Returns:
            (page of listings newest first, total number of matches)
        """
        clauses: List[str] = []
        params: List[Any] = []

        if predicate is not None:
            clause, clause_params = predicate.sql_clause()
            clauses.append(clause)
            params.extend(clause_params)

        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(is_active)

        if search:
            pattern = f"%{search}%"
            clauses.append("(name ILIKE ? OR address ILIKE ? OR phone ILIKE ?)")
            params.extend([pattern, pattern, pattern])

        if tag:
            clauses.append("list_contains(tags, ?)")
            params.append(tag)

        where = " AND ".join(clauses) if clauses else "TRUE"
        with self.conn.cursor() as cur:
            rows = cur.execute(f"""
                SELECT {LISTING_COLUMNS} FROM listings
                WHERE {where}
                ORDER BY created_at DESC, listing_id ASC
            """, params).fetchall()

        matches = []
        for row in rows:
            listing = self._row_to_listing(row)
            if predicate is not None and not predicate.matches(listing):
                continue
            if relationship and not any(m.relationship == relationship for m in listing.family_members):
                continue
            matches.append(listing)

        return matches[offset:offset + limit], len(matches)

    def ingest_listings_csv(
        self,
        csv_path: Path,
        lon_field: str = "lon",
        lat_field: str = "lat",
        name_field: str = "name",
        address_field: str = "address",
        phone_field: str = "phone",
        tags_field: str = "tags",
    ) -> List[Listing]:
        """
        Read listings from a CSV file.

        Rows are returned unsaved so the caller can resolve regions before
        persisting. Tags are a ``;``-separated column.
        """
        df = pd.read_csv(csv_path)

        listings = []
        for _, row in df.iterrows():
            name = _clean(row.get(name_field))
            if not name:
                continue

            lng = row.get(lon_field)
            lat = row.get(lat_field)
            tags = _clean(row.get(tags_field))
            listings.append(Listing(
                name=name,
                address=_clean(row.get(address_field)) or "",
                phone=_clean(row.get(phone_field)),
                lng=float(lng) if pd.notna(lng) else None,
                lat=float(lat) if pd.notna(lat) else None,
                approximate_region=ApproximateRegion(
                    province=_clean(row.get("province")),
                    section=_clean(row.get("section")),
                ),
                tags=[t.strip() for t in tags.split(";") if t.strip()] if tags else [],
            ))

        return listings

    def close(self):
        """Close database connection."""
        self.conn.close()
