from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


def _manifest_dir() -> Path:
    # devbox_setup/lib/manifests.py -> devbox_setup/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


@dataclass(frozen=True)
class SoftwareEntry:
    id: str
    name: str
    category: str
    source: Optional[str] = None


def load_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {path}")
    return data


def load_software_manifest(path: Optional[str] = None) -> List[SoftwareEntry]:
    """Software entries in manifest order, flattened across categories."""

    p = Path(path).expanduser() if path else _manifest_dir() / "software.yaml"
    data = load_yaml(p)
    categories = data.get("categories") or {}
    if not isinstance(categories, dict):
        raise ValueError(f"{p}: categories must be a mapping")

    entries: List[SoftwareEntry] = []
    for category, items in categories.items():
        if not isinstance(items, list):
            raise ValueError(f"{p}: category {category} must be a list")
        for item in items:
            if not isinstance(item, dict) or not item.get("id"):
                raise ValueError(f"{p}: every entry in {category} needs an id")
            entries.append(
                SoftwareEntry(
                    id=str(item["id"]),
                    name=str(item.get("name") or item["id"]),
                    category=str(category),
                    source=str(item["source"]) if item.get("source") else None,
                )
            )
    return entries


def load_driver_manifest(path: Optional[str] = None) -> Dict[str, Dict[str, List[str]]]:
    """section -> vendor -> [package ids]."""

    p = Path(path).expanduser() if path else _manifest_dir() / "drivers.yaml"
    data = load_yaml(p)
    drivers = data.get("drivers") or {}
    if not isinstance(drivers, dict):
        raise ValueError(f"{p}: drivers must be a mapping")

    out: Dict[str, Dict[str, List[str]]] = {}
    for section, vendors in drivers.items():
        if not isinstance(vendors, dict):
            raise ValueError(f"{p}: drivers.{section} must be a mapping")
        out[str(section)] = {
            str(vendor): [str(x) for x in (ids if isinstance(ids, list) else [ids])]
            for vendor, ids in vendors.items()
        }
    return out
