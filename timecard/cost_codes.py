from __future__ import annotations
import re
from typing import Dict, Iterable, Optional, Tuple

from .models import CATEGORY_ORDER, CategoryHours, CostCategory, TaskTypeCodeMap

# Substrings looked for in a normalized task-type name, checked in category order.
CATEGORY_PATTERNS: Tuple[Tuple[CostCategory, Tuple[str, ...]], ...] = (
    (CostCategory.MATERIAL_HANDLING, ("materialhandling",)),
    (CostCategory.PROCESSING_CUTTING, ("processingcutting", "processing")),
    (CostCategory.FABRICATION_FITUP_WELD, ("fabrication", "fitup")),
    (CostCategory.FINISHES, ("finishes", "finish")),
    (CostCategory.OTHER, ("other",)),
)

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_task_type(name: Optional[str]) -> str:
    return _NON_LETTERS.sub("", (name or "").lower())


def category_for_task_type(name: Optional[str]) -> Optional[CostCategory]:
    normalized = normalize_task_type(name)
    if not normalized:
        return None
    for category, patterns in CATEGORY_PATTERNS:
        if any(pattern in normalized for pattern in patterns):
            return category
    return None


def build_code_map(task_types: Iterable[Tuple[str, str]], company_id: Optional[str] = None) -> TaskTypeCodeMap:
    """Build a code map from (task type name, short code) pairs.

    Each name lands in at most one category (its first match), and the first
    task type seen for a category keeps that category's code.
    """
    codes: Dict[str, str] = {}
    category_codes: Dict[CostCategory, str] = {}
    for name, code in task_types:
        normalized = normalize_task_type(name)
        if not normalized or not code:
            continue
        codes.setdefault(normalized, code)
        category = category_for_task_type(normalized)
        if category is not None and category not in category_codes:
            category_codes[category] = code
    return TaskTypeCodeMap(codes=codes, category_codes=category_codes, company_id=company_id)


def dominant_category(hours: CategoryHours) -> Optional[CostCategory]:
    best: Optional[CostCategory] = None
    best_value = 0.0
    for category in CATEGORY_ORDER:
        value = hours.get(category)
        # Strictly greater keeps the earliest category on ties.
        if value > best_value:
            best, best_value = category, value
    return best


def resolve_cost_code(hours: CategoryHours, code_map: Optional[TaskTypeCodeMap]) -> str:
    if code_map is None:
        return ""
    return code_map.code_for(dominant_category(hours))
