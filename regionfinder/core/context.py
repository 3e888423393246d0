"""Reference data shared by the resolver and the filter builder."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Sequence

from regionfinder.core import config
from regionfinder.core.admin_hierarchy import SectionHierarchyIndex
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.core.normalization import normalize_name
from regionfinder.core.overlays import OverlayIndex
from regionfinder.utils.logging import log_structured
from regionfinder.utils.timing import Timer


@dataclass(frozen=True)
class BoundaryContext:
    """
    Everything region resolution needs, built once at startup.

    Attributes:
        store: Boundary repository (and listing store)
        overlays: Primary overlay geometries, highest trust
        exception_overlays: Lower-priority overlay geometries
        exception_names: Normalized names for which exception_overlays may be used
        hierarchy: Section -> province reverse map
    """
    store: DuckDBStore
    overlays: OverlayIndex = field(default_factory=OverlayIndex)
    exception_overlays: OverlayIndex = field(default_factory=OverlayIndex)
    exception_names: FrozenSet[str] = frozenset()
    hierarchy: SectionHierarchyIndex = field(default_factory=SectionHierarchyIndex)

    def is_exception(self, name: Optional[str]) -> bool:
        return bool(name) and normalize_name(name) in self.exception_names


def load_boundary_context(
    store: DuckDBStore,
    overlay_paths: Optional[Sequence[Path]] = None,
    exception_overlay_path: Optional[Path] = None,
    exception_names: Optional[Iterable[str]] = None,
    hierarchy_path: Optional[Path] = None,
) -> BoundaryContext:
    """
    Load overlay and hierarchy reference files and bundle them with the store.

    Any argument left as None falls back to the configured default. Missing
    files are logged and leave the corresponding feature empty.
    """
    if overlay_paths is None:
        overlay_paths = config.BOUNDARY_OVERLAY_PATHS
    if exception_overlay_path is None:
        exception_overlay_path = config.BOUNDARY_EXCEPTION_OVERLAY_PATH
    if exception_names is None:
        exception_names = config.BOUNDARY_EXCEPTION_NAMES
    if hierarchy_path is None:
        hierarchy_path = config.SECTION_HIERARCHY_PATH

    with Timer("load_boundary_context", level="info"):
        overlays = OverlayIndex.from_files(overlay_paths)

        names = frozenset(normalize_name(n) for n in exception_names if normalize_name(n))
        if names:
            exception_overlays = OverlayIndex.from_files([exception_overlay_path])
        else:
            exception_overlays = OverlayIndex()

        hierarchy = SectionHierarchyIndex.from_file(hierarchy_path)

    log_structured(
        "info",
        "Boundary context ready",
        overlays=len(overlays),
        exception_overlays=len(exception_overlays),
        exception_names=sorted(names),
        hierarchy_sections=len(hierarchy),
        boundaries=store.count_boundaries(),
    )

    return BoundaryContext(
        store=store,
        overlays=overlays,
        exception_overlays=exception_overlays,
        exception_names=names,
        hierarchy=hierarchy,
    )
