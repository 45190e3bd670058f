import threading

import pytest

import backend.app.db as db
from backend.app.layouts import DEFAULT_LAYOUTS


def _names(areas):
    return [a['area_name'] for a in areas]


def test_fetch_layout_seeds_from_defaults(temp_db):
    areas = db.fetch_layout('user-1', 'My Local Lidl Express')
    assert _names(areas) == DEFAULT_LAYOUTS['Lidl']
    assert [a['sequence'] for a in areas] == list(range(1, len(areas) + 1))

    # Seeded rows are persisted, not recomputed.
    db.save_layout('user-1', 'My Local Lidl Express', ['Produce', 'Checkout'])
    assert _names(db.fetch_layout('user-1', 'My Local Lidl Express')) == ['Produce', 'Checkout']


def test_fetch_layout_unknown_shop_seeds_generic(temp_db):
    assert _names(db.fetch_layout('user-1', 'Corner Shop')) == DEFAULT_LAYOUTS['Generic']


def test_shop_name_is_case_insensitive(temp_db):
    db.save_layout('user-1', 'Kaufland', ['Bakery', 'Produce'])
    assert _names(db.fetch_layout('user-1', 'kaufland')) == ['Bakery', 'Produce']

    db.save_layout('user-1', 'KAUFLAND', ['Frozen'])
    assert _names(db.fetch_layout('user-1', 'Kaufland')) == ['Frozen']


def test_layouts_are_per_user(temp_db):
    db.save_layout('user-1', 'Lidl', ['Frozen', 'Produce'])
    assert _names(db.fetch_layout('user-2', 'Lidl')) == DEFAULT_LAYOUTS['Lidl']
    assert _names(db.fetch_layout('user-1', 'Lidl')) == ['Frozen', 'Produce']


def test_save_layout_replaces_whole_layout(temp_db):
    db.save_layout('user-1', 'Lidl', ['Produce', 'Bakery', 'Frozen', 'Checkout'])
    saved = db.save_layout('user-1', 'Lidl', ['Checkout', 'Produce'])
    assert saved == [
        {'area_name': 'Checkout', 'sequence': 1},
        {'area_name': 'Produce', 'sequence': 2},
    ]
    assert db.fetch_layout('user-1', 'Lidl') == saved


def test_add_item_defaults_order(temp_db):
    shopping_list = db.create_list('user-1', 'Weekly', shop_name='Lidl')
    first = db.add_item(shopping_list['list_id'], '  Milk ', quantity=2)
    second = db.add_item(shopping_list['list_id'], 'Bread')
    assert first['name'] == 'Milk'
    assert first['order_index'] == 1
    assert second['order_index'] == 2


def test_add_item_rejects_blank_name(temp_db):
    shopping_list = db.create_list('user-1', 'Weekly')
    with pytest.raises(ValueError):
        db.add_item(shopping_list['list_id'], '   ')


def test_add_item_unknown_list(temp_db):
    with pytest.raises(ValueError):
        db.add_item('missing', 'Milk')


def test_create_list_requires_title(temp_db):
    with pytest.raises(ValueError):
        db.create_list('user-1', ' ')


def test_apply_sorted_order(temp_db):
    shopping_list = db.create_list('user-1', 'Weekly', shop_name='Lidl')
    list_id = shopping_list['list_id']
    milk = db.add_item(list_id, 'Milk')
    apples = db.add_item(list_id, 'Apples')
    soap = db.add_item(list_id, 'Soap')

    other_list = db.create_list('user-1', 'Other')
    stranger = db.add_item(other_list['list_id'], 'Stranger')

    items = db.apply_sorted_order(list_id, [
        {'id': apples['id'], 'area_name': 'Produce', 'order_index': 1},
        {'id': milk['id'], 'area_name': 'Meat & dairy', 'order_index': 2},
        {'id': soap['id'], 'area_name': 'Other', 'order_index': 3},
        {'id': stranger['id'], 'area_name': 'Produce', 'order_index': 1},
    ])

    assert [i['name'] for i in items] == ['Apples', 'Milk', 'Soap']
    assert [i['area_name'] for i in items] == ['Produce', 'Meat & dairy', 'Other']
    assert db.get_list_items(other_list['list_id'])[0]['area_name'] is None


def test_concurrent_first_fetch_seeds_once(temp_db, monkeypatch):
    barrier = threading.Barrier(2)
    real_resolve = db.resolve_default_layout

    def resolve_after_both_missed(shop_name=None):
        # Both callers have already seen an empty layout by the time they get here.
        barrier.wait(timeout=5)
        return real_resolve(shop_name)

    monkeypatch.setattr(db, 'resolve_default_layout', resolve_after_both_missed)

    results, errors = [], []

    def fetch():
        try:
            results.append(db.fetch_layout('u1', 'Lidl'))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=fetch) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert [_names(r) for r in results] == [DEFAULT_LAYOUTS['Lidl'], DEFAULT_LAYOUTS['Lidl']]
    monkeypatch.setattr(db, 'resolve_default_layout', real_resolve)
    assert _names(db.fetch_layout('u1', 'Lidl')) == DEFAULT_LAYOUTS['Lidl']


def test_set_item_checked(temp_db):
    shopping_list = db.create_list('user-1', 'Weekly')
    milk = db.add_item(shopping_list['list_id'], 'Milk')

    db.set_item_checked(milk['id'], True)
    assert db.get_list_items(shopping_list['list_id'])[0]['is_checked'] is True

    db.set_item_checked(milk['id'], False)
    assert db.get_list_items(shopping_list['list_id'])[0]['is_checked'] is False

    with pytest.raises(ValueError):
        db.set_item_checked('missing', True)
