"""Province -> section hierarchy loaded from a static reference file."""
import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from regionfinder.core.models import RegionRef
from regionfinder.core.normalization import normalize_name
from regionfinder.utils.logging import log_error, log_structured

SECTION_LIST_FIELDS = ("counties", "bakhsh", "sections")


def load_hierarchy_file(path: Path) -> Dict[str, dict]:
    """
    Load the hierarchy reference file.

    Expected structure:
    {
        "Tehran": {"nameFa": "تهران", "counties": ["..."], "bakhsh": ["..."]},
        ...
    }

    Returns an empty dict (and logs) if the file is missing or not valid JSON.
    """
    if not path.exists():
        log_structured("warning", "Section hierarchy file not found, hierarchy shortcut disabled",
                       path=str(path))
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        log_error(e, {
            "module": "admin_hierarchy",
            "function": "load_hierarchy_file",
            "path": str(path),
        }, level="warning")
        return {}

    if not isinstance(data, dict):
        log_structured("warning", "Section hierarchy file must contain an object", path=str(path))
        return {}

    return data


def _section_names(province_key: str, entry: dict) -> Optional[List[str]]:
    names: List[str] = []
    for field in SECTION_LIST_FIELDS:
        values = entry.get(field, [])
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            log_structured(
                "warning",
                "Malformed section list in hierarchy file, province skipped",
                province=province_key,
                field=field,
            )
            return None
        names.extend(values)
    return names


class SectionHierarchyIndex:
    """
    Reverse map from a county/bakhsh name to its owning province.

    Keys are normalized section names. The first province to list a section
    owns it; later claims are logged and ignored.
    """

    def __init__(self, provinces: Optional[Dict[str, dict]] = None):
        self._section_to_province: Dict[str, RegionRef] = {}
        self.province_count = 0
        self.duplicates = 0
        if provinces:
            self._build(provinces)

    @classmethod
    def from_file(cls, path: Path) -> "SectionHierarchyIndex":
        index = cls(load_hierarchy_file(Path(path)))
        log_structured(
            "info",
            "Section hierarchy loaded",
            path=str(path),
            provinces=index.province_count,
            sections=len(index),
            duplicates=index.duplicates,
        )
        return index

    def _build(self, provinces: Dict[str, dict]):
        for province_key, entry in provinces.items():
            if not isinstance(entry, dict):
                log_structured("warning", "Hierarchy entry is not an object, skipped",
                               province=province_key)
                continue

            sections = _section_names(province_key, entry)
            if sections is None:
                continue

            province = RegionRef(
                name=(entry.get("name") or province_key).strip(),
                name_fa=(entry.get("nameFa") or "").strip() or None,
            )
            self.province_count += 1

            for section in sections:
                self._add_section(section, province)

    def _add_section(self, section: str, province: RegionRef):
        key = normalize_name(section)
        if not key:
            return

        owner = self._section_to_province.get(key)
        if owner is None:
            self._section_to_province[key] = province
            return

        if owner != province:
            self.duplicates += 1
            log_structured(
                "warning",
                "Section listed under more than one province, keeping first",
                section=section,
                kept=owner.name,
                ignored=province.name,
            )

    def province_for(self, section: Optional[str]) -> Optional[RegionRef]:
        """Owning province of a county/bakhsh name in any spelling."""
        if not section:
            return None
        return self._section_to_province.get(normalize_name(section))

    def province_for_any(self, sections: Iterable[Optional[str]]) -> Optional[RegionRef]:
        """Owning province of the first section (in the given order) that is known."""
        for section in sections:
            province = self.province_for(section)
            if province is not None:
                return province
        return None

    def __len__(self) -> int:
        return len(self._section_to_province)

    def __bool__(self) -> bool:
        return bool(self._section_to_province)
