"""Overlay boundary datasets.

Overlays are static GeoJSON files holding corrected polygons for regions
whose repository geometry is known to be wrong. They are read once at
startup and never written back to the repository.
"""
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import geopandas as gpd
import pandas as pd
from shapely.geometry import mapping

from regionfinder.core.config import LEVELS, PROVINCE
from regionfinder.core.geometry import contains_point
from regionfinder.core.models import OverlayEntry, RegionKey
from regionfinder.utils.logging import log_error, log_structured


def _clean(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def read_overlay_file(path: Path) -> List[OverlayEntry]:
    """
    Read one overlay file.

    Expected schema: a GeoJSON FeatureCollection whose features carry
    ``name`` (required), ``nameFa`` and ``level`` (default province)
    properties and a Polygon or MultiPolygon geometry. Features that do not
    fit the schema are logged and skipped.

    Args:
        path: GeoJSON file path

    Returns:
        Entries in file order; empty if the file is missing or unreadable
    """
    if not path.exists():
        log_structured("warning", "Overlay file not found, overlay disabled", path=str(path))
        return []

    try:
        gdf = gpd.read_file(path)
    except Exception as e:
        log_error(e, {"module": "overlays", "function": "read_overlay_file", "path": str(path)},
                  level="warning")
        return []

    if "name" not in gdf.columns:
        log_structured("warning", "Overlay file has no name property", path=str(path))
        return []

    if gdf.crs is not None and gdf.crs != "EPSG:4326":
        gdf = gdf.to_crs("EPSG:4326")

    entries = []
    skipped = 0
    for _, row in gdf.iterrows():
        name = _clean(row.get("name"))
        level = _clean(row.get("level")) or PROVINCE
        geometry = row.geometry

        if (
            not name
            or level not in LEVELS
            or geometry is None
            or geometry.is_empty
            or geometry.geom_type not in ("Polygon", "MultiPolygon")
        ):
            skipped += 1
            continue

        entries.append(OverlayEntry(
            level=level,
            name=name,
            name_fa=_clean(row.get("nameFa")),
            geometry=mapping(geometry),
            source=path.name,
        ))

    log_structured(
        "info",
        "Overlay file loaded",
        path=str(path),
        entries=len(entries),
        skipped=skipped,
    )
    return entries


class OverlayIndex:
    """
    Name-indexed overlay geometries.

    Every entry is reachable through its raw name, its raw Persian name and
    the normalized form of either; all of them reduce to the same RegionKey.
    When two entries claim the same key the one added first is kept, so
    sources must be added in precedence order.
    """

    def __init__(self, entries: Iterable[OverlayEntry] = ()):
        self._by_key: Dict[RegionKey, OverlayEntry] = {}
        self._entries: List[OverlayEntry] = []
        for entry in entries:
            self.add(entry)

    @classmethod
    def from_files(cls, paths: Sequence[Path]) -> "OverlayIndex":
        """Load overlay files, earliest path taking precedence."""
        index = cls()
        for path in paths:
            for entry in read_overlay_file(Path(path)):
                index.add(entry)
        return index

    def add(self, entry: OverlayEntry) -> bool:
        keys = {RegionKey.of(entry.level, n) for n in (entry.name, entry.name_fa) if n}
        keys.discard(RegionKey(entry.level, ""))
        if not keys:
            return False

        claimed = [k for k in keys if k in self._by_key]
        if claimed:
            log_structured(
                "debug",
                "Overlay entry shadowed by higher-precedence source",
                name=entry.name,
                region_level=entry.level,
                source=entry.source,
            )
            # Unclaimed aliases still point at the new entry
            keys = keys - set(claimed)
            if not keys:
                return False

        for key in keys:
            self._by_key[key] = entry
        if entry not in self._entries:
            self._entries.append(entry)
        return True

    def get(self, level: str, name: Optional[str]) -> Optional[OverlayEntry]:
        """Entry for a level and name in any spelling, or None."""
        if not name:
            return None
        return self._by_key.get(RegionKey.of(level, name))

    def find_containing(self, lng: float, lat: float, level: str = PROVINCE) -> Optional[OverlayEntry]:
        """First entry of the level (in precedence order) whose geometry contains the point."""
        for entry in self._entries:
            if entry.level == level and contains_point(lng, lat, entry.geometry):
                return entry
        return None

    def entries(self, level: Optional[str] = None) -> List[OverlayEntry]:
        return [e for e in self._entries if level is None or e.level == level]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
