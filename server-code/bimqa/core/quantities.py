# bimqa/core/quantities.py
"""
Area / volume values as they appear in props_flat: plain numbers, strings with a
unit suffix ("123.45 m²", "123.45m2") or comma decimals ("123,45").
"""
from __future__ import annotations
import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class Quantity:
    name: str          # "area" | "volume"
    task: str          # plan task handled by this quantity
    total_field: str   # key of the total in the task result
    default_key: str   # props_flat key used when the plan has none
    default_unit: str


AREA = Quantity("area", "sum_area", "total_area", "Dimensions.Area", "m²")
VOLUME = Quantity("volume", "sum_volume", "total_volume", "Dimensions.Volume", "m³")
QUANTITIES = {q.task: q for q in (AREA, VOLUME)}

UNIT_ALIASES = {
    "m²": "m²", "m2": "m²", "m^2": "m²", "sqm": "m²", "sq m": "m²",
    "m³": "m³", "m3": "m³", "m^3": "m³", "cu m": "m³",
    "ft²": "ft²", "ft2": "ft²", "sf": "ft²", "sq ft": "ft²",
    "ft³": "ft³", "ft3": "ft³", "cf": "ft³", "cu ft": "ft³",
}

VALUE_RE = re.compile(r"^([-+]?\d[\d\s.,']*)(.*)$")


def normalize_unit(text: str) -> Optional[str]:
    u = (text or "").strip().lower().rstrip(".")
    return UNIT_ALIASES.get(u)


def _parse_number_text(s: str) -> Optional[float]:
    s = re.sub(r"[\s']", "", s)
    if not s or not re.search(r"\d", s):
        return None
    # Dot and comma at once: the right-most symbol is the decimal separator
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        # one comma is the decimal point (1,250 -> 1.25); only repeated ,ddd groups are thousands
        if re.fullmatch(r"[-+]?\d{1,3}(,\d{3}){2,}", s):
            s = s.replace(",", "")
        elif re.fullmatch(r"[-+]?\d+,\d+", s):
            s = s.replace(",", ".")
        else:
            return None
    try:
        v = float(s)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def parse_quantity(raw: Any) -> Optional[Tuple[float, Optional[str]]]:
    """(value, unit or None), or None when the value cannot be read as a number."""
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        v = float(raw)
        return (v, None) if math.isfinite(v) else None
    if not isinstance(raw, str):
        return None
    s = raw.replace("\u00a0", " ").replace("\u2212", "-").strip()
    m = VALUE_RE.match(s)
    if not m:
        return None
    value = _parse_number_text(m.group(1))
    if value is None:
        return None
    return value, normalize_unit(m.group(2))


def coerce_number(raw: Any, default: float = 0.0) -> float:
    parsed = parse_quantity(raw)
    return parsed[0] if parsed else default


def sum_quantities(values: Iterable[Any], quantity: Quantity) -> Dict[str, Any]:
    total = 0.0
    n = 0
    skipped = 0
    units: Counter = Counter()
    for raw in values:
        parsed = parse_quantity(raw)
        if parsed is None:
            skipped += 1
            continue
        value, unit = parsed
        total += value
        n += 1
        if unit:
            units[unit] += 1

    unit = units.most_common(1)[0][0] if units else quantity.default_unit
    notes = f"Summed {n} {quantity.name} values"
    if skipped:
        notes += f"; {skipped} rows without a readable number were excluded"
    if len(units) > 1:
        notes += f"; mixed units found ({', '.join(sorted(units))}), reported as {unit} without conversion"
    return {"total": round(total, 6), "count": n, "unit": unit, "notes": notes}
