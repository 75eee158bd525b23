"""Software status columns and their mapping to progress entries.

A progress sheet carries one column per software, headed either by a short
numeric code ("7") or by a free-text name ("ILLUSTRATOR + Indegn"). A cell
holds a status token (XX, IP, NO, Finished). The row may also declare a 1st
and 2nd software with their own batch dates and faculty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .aliases import resolve_field
from .cells import RawRow, as_text
from .dates import format_iso, normalize_date
from .domain import PROGRESS_STATUSES
from .errors import StaticTableError

STATUS_TOKENS: Mapping[str, str] = MappingProxyType(
    {
        "XX": "not-started",
        "IP": "in-progress",
        "NO": "not-applicable",
        "Finished": "finished",
    }
)

SOFTWARE_CODES: Mapping[str, str] = MappingProxyType(
    {
        "6": "Photoshop",
        "7": "Illustrator",
        "8": "InDesign",
        "10": "CorelDraw",
        "11": "Figma",
        "12": "After Effects",
        "13": "Premiere Pro",
        "14": "Audition",
        "15": "Blender",
        "16": "3ds Max",
        "23": "Cinema 4D",
        "24": "Maya",
        "32": "SketchUp",
        "33": "AutoCAD",
        "48": "Revit",
        "72": "Unity",
        "89": "Unreal Engine",
        "92": "DaVinci Resolve",
    }
)

SOFTWARE_NAME_COLUMNS: Mapping[str, str] = MappingProxyType(
    {
        "PHOTOSHOP": "Photoshop",
        "ILLUSTRATOR + Indegn": "Illustrator",
        "COREL": "CorelDraw",
        "Figma": "Figma",
        "XD": "Adobe XD",
        "ANIMATE CC": "Animate CC",
        "PREMIERE AUDITION": "Premiere Pro",
        "AFTER EFFECT": "After Effects",
        "HTML Java DW CSS": "HTML Java DW CSS",
        "Ar. MAX + Vray": "3ds Max",
        "MAX": "3ds Max",
        "FUSION": "Fusion",
        "REAL FLOW": "RealFlow",
        "FUME FX": "FumeFX",
        "NUKE": "Nuke",
        "THINKING PARTICAL": "Thinking Particles",
        "RAY FIRE": "RayFire",
        "MOCHA": "Mocha",
        "SILHOUETTE": "Silhouette",
        "PF TRACK": "PFTrack",
        "VUE": "Vue",
        "HOUDNI": "Houdini",
        "FCP": "Final Cut Pro",
        "MAYA": "Maya",
        "CAD UNITY": "Unity",
        "MUDBOX": "Mudbox",
        "UNITY GAME DESIGN": "Unity",
        "Z-BRUSH": "ZBrush",
        "LUMION": "Lumion",
        "SKETCHUP": "SketchUp",
        "UNREAL": "Unreal Engine",
        "BLENDER PRO": "Blender",
        "CINEAMA 4D": "Cinema 4D",
        "SUBSTANCE PAINTER": "Substance Painter",
        "3D EQUALIZER": "3DEqualizer",
        "Photography": "Photography",
        "Auto-Cad": "AutoCAD",
        "Wordpress": "WordPress",
        "Vuforia SDK": "Vuforia SDK",
        "Davinci": "DaVinci Resolve",
    }
)

# Leading characters of a declared software name used to pair it with a column.
SECTION_MATCH_PREFIX = 5

_WHITESPACE = re.compile(r"\s+")


def _header_token(header: str) -> str:
    return _WHITESPACE.sub(" ", header).strip().upper()


def _validate_tables() -> None:
    for token, status in STATUS_TOKENS.items():
        if status not in PROGRESS_STATUSES:
            raise StaticTableError(f"Status token {token!r} maps to unknown status {status!r}")
    for code, name in SOFTWARE_CODES.items():
        if not code.isdigit() or not name.strip():
            raise StaticTableError(f"Invalid software code entry {code!r} -> {name!r}")
    seen: Dict[str, str] = {}
    for header, name in SOFTWARE_NAME_COLUMNS.items():
        token = _header_token(header)
        if not token or not name.strip():
            raise StaticTableError(f"Invalid software column entry {header!r} -> {name!r}")
        if token in seen:
            raise StaticTableError(f"Software columns {seen[token]!r} and {header!r} collide")
        seen[token] = header


_validate_tables()

_NAME_COLUMN_INDEX: Mapping[str, str] = MappingProxyType(
    {_header_token(header): name for header, name in SOFTWARE_NAME_COLUMNS.items()}
)
_CANONICAL_INDEX: Mapping[str, str] = MappingProxyType(
    {
        name.casefold(): name
        for name in list(SOFTWARE_CODES.values()) + list(SOFTWARE_NAME_COLUMNS.values())
    }
)


def status_for_token(value: Any) -> Optional[str]:
    """Map a status cell to a progress status; unknown tokens give None."""
    if not isinstance(value, str):
        return None
    return STATUS_TOKENS.get(value)


def canonical_software_name(declared: str) -> str:
    """Canonical name for a software typed into a "1st Software" cell."""
    cleaned = _WHITESPACE.sub(" ", declared).strip()
    known = _CANONICAL_INDEX.get(cleaned.casefold())
    if known:
        return known
    return _NAME_COLUMN_INDEX.get(_header_token(cleaned), cleaned)


@dataclass(frozen=True)
class SoftwareSection:
    """The "1st Software" / "2nd Software" block of a row."""

    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    batch_timing: Optional[str] = None
    faculty: Optional[str] = None
    status: Optional[str] = None

    def matches(self, software_name: str) -> bool:
        if not self.name:
            return False
        prefix = self.name.lower()[:SECTION_MATCH_PREFIX]
        return prefix in software_name.lower()


@dataclass(frozen=True)
class RowSoftwareContext:
    first: SoftwareSection
    second: SoftwareSection
    batch_timing: Optional[str] = None
    schedule: Optional[str] = None
    future_batch: Optional[Dict[str, Any]] = None

    def section_for(self, software_name: str) -> Optional[SoftwareSection]:
        """First declared section whose name prefix occurs in ``software_name``."""
        for section in (self.first, self.second):
            if section.matches(software_name):
                return section
        return None


@dataclass
class SoftwareEntry:
    """Progress facts for one software gathered from a single row."""

    software_name: str
    software_code: Optional[str] = None
    status: Optional[str] = None
    batch_start_date: Optional[date] = None
    batch_end_date: Optional[date] = None
    faculty_name: Optional[str] = None
    batch_timing: Optional[str] = None
    schedule: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = field(default=None)

    def merge(self, other: "SoftwareEntry") -> None:
        """Take every field ``other`` sets; keep ours where it is silent."""
        for item in fields(self):
            if item.name == "software_name":
                continue
            value = getattr(other, item.name)
            if value is not None:
                setattr(self, item.name, value)

    def changes(self) -> Dict[str, Any]:
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name != "software_name" and getattr(self, item.name) is not None
        }


def _section(row: RawRow, prefix: str) -> SoftwareSection:
    name = as_text(resolve_field(row, f"{prefix}_software"))
    return SoftwareSection(
        name=name,
        start_date=normalize_date(resolve_field(row, f"{prefix}_software_start_date")),
        end_date=normalize_date(resolve_field(row, f"{prefix}_software_end_date")),
        batch_timing=as_text(resolve_field(row, f"{prefix}_software_batch_timing")),
        faculty=as_text(resolve_field(row, f"{prefix}_software_faculty")),
        status=status_for_token(resolve_field(row, f"{prefix}_software_status")),
    )


def _future_batch(row: RawRow) -> Optional[Dict[str, Any]]:
    payload = {
        "startDate": format_iso(normalize_date(resolve_field(row, "future_batch_start_date"))),
        "endDate": format_iso(normalize_date(resolve_field(row, "future_batch_end_date"))),
        "time": as_text(resolve_field(row, "future_batch_time")),
        "schedule": as_text(resolve_field(row, "future_batch_schedule")),
        "faculty": as_text(resolve_field(row, "future_batch_faculty")),
        "remark": as_text(resolve_field(row, "remark")),
        "nextSoftware": as_text(resolve_field(row, "next_software")),
    }
    if all(value is None for value in payload.values()):
        return None
    return payload


def build_context(row: RawRow) -> RowSoftwareContext:
    future_batch = _future_batch(row)
    schedule = (future_batch or {}).get("schedule") or as_text(resolve_field(row, "schedule"))
    return RowSoftwareContext(
        first=_section(row, "first"),
        second=_section(row, "second"),
        batch_timing=as_text(resolve_field(row, "batch_timing")),
        schedule=schedule,
        future_batch={"futureBatch": future_batch} if future_batch else None,
    )


def _column_entry(
    software_name: str,
    status: str,
    context: RowSoftwareContext,
    code: Optional[str] = None,
) -> SoftwareEntry:
    section = context.section_for(software_name)
    return SoftwareEntry(
        software_name=software_name,
        software_code=code,
        status=status,
        batch_start_date=section.start_date if section else None,
        batch_end_date=section.end_date if section else None,
        faculty_name=section.faculty if section else None,
        batch_timing=(section.batch_timing if section else None) or context.batch_timing,
        schedule=context.schedule,
        metadata=context.future_batch,
    )


def _declared_entry(section: SoftwareSection, context: RowSoftwareContext) -> Optional[SoftwareEntry]:
    """Entry for a declared 1st/2nd software.

    Future batch details belong to the status columns only; a declared
    software picks them up solely by merging with a column entry.
    """
    if not section.name:
        return None
    return SoftwareEntry(
        software_name=canonical_software_name(section.name),
        status=section.status,
        batch_start_date=section.start_date,
        batch_end_date=section.end_date,
        faculty_name=section.faculty,
        batch_timing=section.batch_timing or context.batch_timing,
    )


def map_software(row: RawRow, context: Optional[RowSoftwareContext] = None) -> List[SoftwareEntry]:
    """Collect the software progress entries a row describes.

    Code columns come first, then named columns, then the declared 1st and
    2nd software. Entries that land on the same canonical software are merged
    in that order.
    """
    context = context or build_context(row)
    collected: List[SoftwareEntry] = []

    for code, software_name in SOFTWARE_CODES.items():
        status = status_for_token(row.get(code))
        if status:
            collected.append(_column_entry(software_name, status, context, code=code))

    for header, value in row.items():
        if not isinstance(header, str) or header in SOFTWARE_CODES:
            continue
        software_name = _NAME_COLUMN_INDEX.get(_header_token(header))
        if software_name is None:
            continue
        status = status_for_token(value)
        if status:
            collected.append(_column_entry(software_name, status, context))

    for section in (context.first, context.second):
        entry = _declared_entry(section, context)
        if entry is not None:
            collected.append(entry)

    merged: Dict[str, SoftwareEntry] = {}
    for entry in collected:
        key = entry.software_name.casefold()
        if key in merged:
            merged[key].merge(entry)
        else:
            merged[key] = entry
    return list(merged.values())


__all__ = [
    "RowSoftwareContext",
    "SECTION_MATCH_PREFIX",
    "SOFTWARE_CODES",
    "SOFTWARE_NAME_COLUMNS",
    "STATUS_TOKENS",
    "SoftwareEntry",
    "SoftwareSection",
    "build_context",
    "canonical_software_name",
    "map_software",
    "status_for_token",
]
