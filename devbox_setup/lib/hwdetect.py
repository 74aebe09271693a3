from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .command import CmdResult
from .powershell import ps_argv

logger = logging.getLogger(__name__)

Probe = Callable[[Sequence[str]], Optional[CmdResult]]

# Substring -> vendor. Order matters: first match wins.
_VENDOR_PATTERNS: List[Tuple[str, str]] = [
    ("nvidia", "nvidia"),
    ("advanced micro devices", "amd"),
    ("amd", "amd"),
    ("radeon", "amd"),
    ("ati technologies", "amd"),
    ("intel", "intel"),
    ("realtek", "realtek"),
    ("qualcomm", "qualcomm"),
    ("killer", "qualcomm"),
    ("broadcom", "broadcom"),
    ("mediatek", "mediatek"),
    ("samsung", "samsung"),
    ("western digital", "wdc"),
    ("wdc", "wdc"),
    ("crucial", "micron"),
    ("micron", "micron"),
    ("kingston", "kingston"),
    ("seagate", "seagate"),
    ("dell", "dell"),
    ("lenovo", "lenovo"),
    ("hewlett", "hp"),
    ("hp ", "hp"),
    ("asus", "asus"),
    ("micro-star", "msi"),
    ("msi", "msi"),
    ("gigabyte", "gigabyte"),
    ("microsoft", "microsoft"),
]

# section -> (CIM class, properties, filter, single record?)
_SECTIONS: Dict[str, Tuple[str, Sequence[str], Optional[str], bool]] = {
    "system": ("Win32_ComputerSystem", ("Manufacturer", "Model", "SystemType"), None, True),
    "processor": ("Win32_Processor", ("Name", "Manufacturer", "NumberOfCores"), None, True),
    "graphics": ("Win32_VideoController", ("Name", "AdapterCompatibility", "DriverVersion"), None, False),
    "audio": ("Win32_SoundDevice", ("Name", "Manufacturer"), None, False),
    "network": ("Win32_NetworkAdapter", ("Name", "Manufacturer"), "PhysicalAdapter = True", False),
    "storage": ("Win32_DiskDrive", ("Model", "InterfaceType", "Size"), None, False),
}


def classify_vendor(*texts: Optional[str]) -> str:
    haystack = " ".join(t for t in texts if t).lower()
    for needle, vendor in _VENDOR_PATTERNS:
        if needle in haystack:
            return vendor
    return "unknown"


def _cim_script(cls: str, props: Sequence[str], where: Optional[str]) -> str:
    flt = f" -Filter '{where}'" if where else ""
    return (
        f"Get-CimInstance -ClassName {cls}{flt} | "
        f"Select-Object {','.join(props)} | ConvertTo-Json -Compress -Depth 3"
    )


def _as_list(data: Any) -> List[Dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    return []


def _query(probe: Probe, cls: str, props: Sequence[str], where: Optional[str]) -> Optional[List[Dict[str, Any]]]:
    r = probe(ps_argv(_cim_script(cls, props, where)))
    if r is None or not r.ok:
        return None
    out = r.stdout.strip()
    if not out:
        return []
    try:
        return _as_list(json.loads(out))
    except ValueError:
        logger.warning("Unparseable CIM output for %s", cls)
        return None


def _record(section: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    name = raw.get("Name") or raw.get("Model")
    manufacturer = raw.get("Manufacturer") or raw.get("AdapterCompatibility")
    rec: Dict[str, Any] = {
        "name": str(name).strip() if name else None,
        "manufacturer": str(manufacturer).strip() if manufacturer else None,
        "vendor": classify_vendor(manufacturer, name),
    }
    if section == "graphics":
        rec["driver_version"] = raw.get("DriverVersion")
    elif section == "storage":
        rec["interface"] = raw.get("InterfaceType")
        rec["size_bytes"] = raw.get("Size")
    elif section == "system":
        rec["model"] = raw.get("Model")
        rec["system_type"] = raw.get("SystemType")
    elif section == "processor":
        rec["cores"] = raw.get("NumberOfCores")
    return rec


def detect_hardware(probe: Probe, *, strict: bool = True) -> Dict[str, Any]:
    """Collect a vendor-classified hardware descriptor.

    strict=False (dry-run) turns an unavailable query into an empty section
    instead of an error, so a preview never fails on missing rights or tools.
    """

    hw: Dict[str, Any] = {"detected_at": datetime.now().isoformat(timespec="seconds")}
    unavailable: List[str] = []

    for section, (cls, props, where, single) in _SECTIONS.items():
        rows = _query(probe, cls, props, where)
        if rows is None:
            unavailable.append(section)
            rows = []
        records = [_record(section, r) for r in rows]
        if single:
            hw[section] = records[0] if records else None
        else:
            hw[section] = records

    if unavailable:
        if strict:
            raise RuntimeError(f"Hardware query failed for: {', '.join(unavailable)}")
        hw["unavailable"] = unavailable
        logger.warning("Hardware sections unavailable (preview only): %s", ", ".join(unavailable))

    gpus = ",".join(g.get("vendor", "unknown") for g in hw.get("graphics") or []) or "none"
    logger.info("Hardware: system=%s gpu=%s", (hw.get("system") or {}).get("vendor"), gpus)
    return hw


def hardware_vendors(hw: Dict[str, Any]) -> List[Tuple[str, str]]:
    """Distinct (section, vendor) pairs present in a hardware descriptor, in section order."""

    pairs: List[Tuple[str, str]] = []
    for section in _SECTIONS:
        value = hw.get(section)
        for rec in _as_list(value):
            pair = (section, str(rec.get("vendor") or "unknown"))
            if pair[1] != "unknown" and pair not in pairs:
                pairs.append(pair)
    return pairs
