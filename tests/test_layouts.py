from backend.app.layouts import (
    DEFAULT_LAYOUTS,
    SORT_FALLBACK_LAYOUT,
    effective_area_names,
    resolve_default_layout,
)


def test_lidl_substring_matches_preset():
    assert resolve_default_layout('My Local Lidl Express') == DEFAULT_LAYOUTS['Lidl']


def test_match_is_case_insensitive():
    assert resolve_default_layout('KAUFLAND Bratislava') == DEFAULT_LAYOUTS['Kaufland']
    assert resolve_default_layout('coop-JEDNOTA Nitra') == DEFAULT_LAYOUTS['Coop-jednota']


def test_unknown_or_missing_shop_gets_generic():
    assert resolve_default_layout('Unbranded Store') == DEFAULT_LAYOUTS['Generic']
    assert resolve_default_layout(None) == DEFAULT_LAYOUTS['Generic']
    assert resolve_default_layout('') == DEFAULT_LAYOUTS['Generic']


def test_first_catalog_key_wins():
    assert resolve_default_layout('Lidl next to Kaufland') == DEFAULT_LAYOUTS['Kaufland']


def test_resolved_layout_is_a_copy():
    areas = resolve_default_layout('Lidl')
    areas.append('Garden')
    assert 'Garden' not in DEFAULT_LAYOUTS['Lidl']


def test_effective_areas_sorted_by_sequence():
    layout = [
        {'area_name': 'Checkout', 'sequence': 3},
        {'area_name': 'Produce', 'sequence': 1},
        {'area_name': 'Bakery', 'sequence': 2},
    ]
    assert effective_area_names(layout) == ['Produce', 'Bakery', 'Checkout']


def test_effective_areas_drop_duplicate_names():
    layout = [
        {'area_name': 'Produce', 'sequence': 1},
        {'area_name': 'Produce', 'sequence': 2},
        {'area_name': 'Frozen', 'sequence': 3},
    ]
    assert effective_area_names(layout) == ['Produce', 'Frozen']


def test_empty_layout_uses_sort_fallback():
    assert effective_area_names([]) == SORT_FALLBACK_LAYOUT
    assert effective_area_names(None) == SORT_FALLBACK_LAYOUT
    assert 'Dry goods & pantry' in SORT_FALLBACK_LAYOUT
