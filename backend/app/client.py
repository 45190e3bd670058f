from collections import defaultdict
from typing import List, Optional
import os
import argparse
import sys

import httpx

from .db import add_item, apply_sorted_order, create_list, fetch_layout, get_list_items, init_db

DEFAULT_SERVICE_URL = 'http://localhost:8000'


class SortRequestError(Exception):
    """The sort service answered with an error.

    `sorted` holds the degraded all-"Other" assignment the service still
    returns on failure, or an empty list when none came back.
    """

    def __init__(self, message: str, status_code: int = None, sorted_rows: List[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.sorted = sorted_rows or []


def request_sort(shop_name: Optional[str], items: List[dict], layout: List[dict],
                 client: httpx.Client = None) -> List[dict]:
    """POST a list to the sort service and return its `sorted` rows."""
    body = {
        'shopName': shop_name or 'Unknown',
        'items': [
            {'id': item['id'], 'name': item['name'], 'quantity': item.get('quantity')}
            for item in items
        ],
        'layout': [{'area_name': a['area_name'], 'sequence': a['sequence']} for a in layout],
    }

    if client is None:
        base_url = os.getenv('SORT_SERVICE_URL', DEFAULT_SERVICE_URL).rstrip('/')
        timeout = float(os.getenv('SORT_CLIENT_TIMEOUT_S', '60'))
        with httpx.Client(base_url=base_url, timeout=timeout) as owned:
            response = owned.post('/sort-by-layout', json=body)
    else:
        response = client.post('/sort-by-layout', json=body)

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    if response.status_code >= 400:
        message = payload.get('message') or payload.get('error') or response.text
        raise SortRequestError(message, status_code=response.status_code,
                               sorted_rows=payload.get('sorted'))
    return payload.get('sorted') or []


def sort_list(list_id: str, user_id: str, shop_name: Optional[str],
              client: httpx.Client = None, apply_degraded: bool = False) -> List[dict]:
    """Sort a stored list by the user's layout for `shop_name` and persist the result.

    On a service error the list is left untouched unless `apply_degraded` is
    set, in which case the fallback assignment is written before re-raising.
    """
    layout = fetch_layout(user_id, shop_name or 'Unknown')
    items = get_list_items(list_id)
    if not items:
        return []

    try:
        sorted_rows = request_sort(shop_name, items, layout, client=client)
    except SortRequestError as e:
        if apply_degraded and e.sorted:
            apply_sorted_order(list_id, e.sorted)
        raise

    return apply_sorted_order(list_id, sorted_rows)


def group_by_area(items: List[dict]) -> List[dict]:
    """Group already-ordered items into [{"area": ..., "items": [...]}] in first-seen order."""
    grouped = defaultdict(list)
    order = []
    for item in items:
        area = item.get('area_name') or 'Other'
        if area not in grouped:
            order.append(area)
        grouped[area].append(item['name'])
    return [{'area': area, 'items': grouped[area]} for area in order]


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        description='Sort a shopping list by store layout and print a bulleted list.'
    )
    parser.add_argument('--user', '-u', help='User id owning the list and layout.', type=str, default='cli')
    parser.add_argument('--shop', '-s', help='Shop name (e.g. Lidl or Kaufland).', type=str)
    parser.add_argument('--list', '-l', help='Comma-separated list of items (single string).', type=str)
    parser.add_argument('--apply-degraded', action='store_true',
                        help='Write the all-"Other" fallback order when sorting fails.')

    parser.add_argument('pos_items', nargs='*', help='Positional items (fallback)')

    args = parser.parse_args()

    if args.list:
        parsed_items = [p.strip() for p in args.list.split(',') if p.strip()]
    else:
        parsed_items = args.pos_items
    if not parsed_items:
        parser.error('items must be provided via --list or as positional arguments')

    init_db()
    shopping_list = create_list(args.user, title=f"{args.shop or 'Shopping'} list", shop_name=args.shop)
    for name in parsed_items:
        add_item(shopping_list['list_id'], name)

    try:
        result = sort_list(shopping_list['list_id'], args.user, args.shop,
                           apply_degraded=args.apply_degraded)
    except (SortRequestError, httpx.HTTPError) as e:
        print(f'Sorting failed: {e}', file=sys.stderr)
        sys.exit(1)

    for group in group_by_area(result):
        print(f"{group['area']}:")
        for name in group['items']:
            print(f"- {name}")
        print("")
