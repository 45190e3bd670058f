from typing import Any, Iterable, List, Mapping

from .layouts import OTHER_AREA


def _valid_order_index(value: Any):
    """Return `value` as a positive int, or None when it isn't one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, float) and value.is_integer() and value >= 1:
        return int(value)
    return None


def sanitize(items: List[Mapping], area_names: Iterable[str], candidates: Any) -> List[dict]:
    """Turn raw model output into one assignment per item.

    Candidates naming unknown ids are dropped, unknown areas become "Other",
    missing or malformed order values fall back to their position, and items
    the model skipped are appended as "Other". The result is ordered by
    order_index and renumbered 1..N. Never raises on odd candidate shapes.
    """
    if not items:
        return []

    valid_ids = [item['id'] for item in items]
    valid_id_set = set(valid_ids)
    area_set = set(area_names)
    area_set.add(OTHER_AREA)

    if not isinstance(candidates, list):
        candidates = []

    kept = []
    seen = set()
    for row in candidates:
        if not isinstance(row, Mapping):
            continue
        row_id = row.get('id')
        if not isinstance(row_id, str) or row_id not in valid_id_set or row_id in seen:
            continue
        seen.add(row_id)
        kept.append(row)

    cleaned = []
    for idx, row in enumerate(kept):
        area_name = row.get('area_name')
        if not isinstance(area_name, str) or area_name not in area_set:
            area_name = OTHER_AREA
        order_index = _valid_order_index(row.get('order_index'))
        if order_index is None:
            order_index = idx + 1
        cleaned.append({'id': row['id'], 'area_name': area_name, 'order_index': order_index})

    for item_id in valid_ids:
        if item_id not in seen:
            seen.add(item_id)
            cleaned.append({'id': item_id, 'area_name': OTHER_AREA, 'order_index': len(cleaned) + 1})

    cleaned.sort(key=lambda row: row['order_index'])
    for position, row in enumerate(cleaned, start=1):
        row['order_index'] = position
    return cleaned
