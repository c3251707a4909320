"""Immutable dictionary assets for the field normalizers.

Departments, personal names and ink-type OCR variants are data, not
code: they are loaded once from YAML at startup and handed to the
normalizers, with built-in defaults when no asset file is present.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from inkform.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_DEPARTMENTS: tuple[str, ...] = (
    # Medical
    "الطوارئ",
    "العناية المركزة",
    "الحضانة",
    "العمليات",
    "الولادة",
    "الأطفال",
    "الباطنية",
    "الجراحة",
    "العظام",
    "القلب",
    "الأشعة",
    "المختبر",
    "الصيدلية",
    "العيادات الخارجية",
    # Administration and support
    "الإدارة",
    "الموارد البشرية",
    "المالية",
    "الصيانة",
    "النظافة",
    "الأمن",
    "المخازن",
    "تقنية المعلومات",
    "الجودة",
    "السجلات الطبية",
    "الاستقبال",
    "خدمة العملاء",
)

DEFAULT_NAMES: tuple[str, ...] = (
    "عبدالله",
    "محمد",
    "أحمد",
    "علي",
    "فهد",
    "سارة",
    "فاطمة",
    "نورة",
    "خالد",
    "سلطان",
    "الحربي",
    "العتيبي",
    "الشمري",
    "القحطاني",
    "الغامدي",
    "الدوسري",
    "المطيري",
    "العنزي",
    "عبدالعزيز",
    "عبدالرحمن",
    "إبراهيم",
    "يوسف",
    "عمر",
    "حسن",
    "حسين",
    "منصور",
    "سعد",
    "سعود",
    "مشعل",
    "بندر",
    "تركي",
    "ناصر",
    "طلال",
    "ريم",
    "هند",
    "منى",
    "عائشة",
    "مريم",
    "لينا",
)

# Order matters: containment lookups return the first key that matches.
DEFAULT_INK_TYPES: dict[str, str] = {
    "ORIGINAL": "Original",
    "0RIGINAL": "Original",
    "ORIG1NAL": "Original",
    "OG": "Original",
    "0G": "Original",
    "COMPATIBLE": "Compatible",
    "C0MPATIBLE": "Compatible",
    "COMPATIBL3": "Compatible",
    "COMP": "Compatible",
    "C0MP": "Compatible",
    "REFILLED": "Refilled",
    "REFILL": "Refilled",
    "REF1LLED": "Refilled",
    "REF": "Refilled",
    "GIG": "Original",
    "OIG": "Original",
    "CIG": "Compatible",
    "G1G": "Original",
    "010": "Original",
    "C10": "Compatible",
}


@dataclass(frozen=True)
class Dictionaries:
    """Read-only lookup tables consumed by the normalizers."""

    departments: tuple[str, ...]
    names: tuple[str, ...]
    ink_types: Mapping[str, str]

    @classmethod
    def defaults(cls) -> "Dictionaries":
        return cls(
            departments=DEFAULT_DEPARTMENTS,
            names=DEFAULT_NAMES,
            ink_types=MappingProxyType(dict(DEFAULT_INK_TYPES)),
        )


def load_dictionaries(path: Path | None = None) -> Dictionaries:
    """Load dictionary assets from a YAML file.

    Sections missing from the file keep their built-in defaults. Ink-type
    keys are uppercased so lookups stay case-insensitive.

    Args:
        path: Path to the dictionaries YAML file.

    Returns:
        Immutable dictionaries.
    """
    defaults = Dictionaries.defaults()
    if path is None or not path.exists():
        logger.debug("Using built-in dictionaries")
        return defaults

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    departments = tuple(str(d).strip() for d in data.get("departments") or ())
    names = tuple(str(n).strip() for n in data.get("names") or ())
    raw_ink = data.get("ink_types") or {}
    ink_types = {str(k).strip().upper(): str(v).strip() for k, v in raw_ink.items()}

    logger.info(
        "Loaded dictionaries from %s (%d departments, %d names, %d ink variants)",
        path,
        len(departments),
        len(names),
        len(ink_types),
    )
    return Dictionaries(
        departments=departments or defaults.departments,
        names=names or defaults.names,
        ink_types=MappingProxyType(ink_types) if ink_types else defaults.ink_types,
    )
