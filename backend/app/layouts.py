from typing import Dict, Iterable, List, Optional

# Presets used to seed a user's layout the first time a shop is requested.
# Iteration order matters: the first key found in the shop name wins.
DEFAULT_LAYOUTS: Dict[str, List[str]] = {
    'Kaufland': ['Produce', 'Bakery', 'Refrigerated', 'Dry goods', 'Frozen', 'Household', 'Checkout'],
    'Lidl': ['Produce', 'Bakery', 'Meat & dairy', 'Pantry', 'Frozen', 'Household', 'Checkout'],
    'Coop-jednota': ['Produce', 'Bakery', 'Refrigerated', 'Pantry', 'Household', 'Checkout'],
    'Generic': ['Produce', 'Deli', 'Bakery', 'Refrigerated', 'Dry goods', 'Frozen', 'Household', 'Checkout'],
}

# Walking order the sorter uses when a request arrives without any layout.
# Wording differs from DEFAULT_LAYOUTS['Generic']; see DESIGN.md.
SORT_FALLBACK_LAYOUT: List[str] = [
    'Produce',
    'Deli',
    'Bakery',
    'Refrigerated',
    'Dry goods & pantry',
    'Frozen',
    'Household & cleaning',
    'Checkout',
]

OTHER_AREA = 'Other'


def resolve_default_layout(shop_name: Optional[str] = None) -> List[str]:
    """Return the preset area list for a shop name.

    Matching is a case-insensitive substring test against the catalog keys,
    so "My Local Lidl Express" resolves to the Lidl preset. Unknown or empty
    shop names get the Generic preset.
    """
    if not shop_name:
        return list(DEFAULT_LAYOUTS['Generic'])
    lowered = shop_name.lower()
    for key, areas in DEFAULT_LAYOUTS.items():
        if key.lower() in lowered:
            return list(areas)
    return list(DEFAULT_LAYOUTS['Generic'])


def effective_area_names(layout: Iterable[dict]) -> List[str]:
    """Area names in walking order for a sort request.

    `layout` entries are dicts with `area_name` and `sequence`. Python's sort
    is stable, so equal sequences keep request order.
    """
    ordered = sorted(layout or [], key=lambda area: area['sequence'])
    seen = set()
    names = []
    for area in ordered:
        name = area['area_name']
        if name not in seen:
            seen.add(name)
            names.append(name)
    return names or list(SORT_FALLBACK_LAYOUT)
