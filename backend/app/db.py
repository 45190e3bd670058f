import os
import sqlite3
import uuid

# Use an absolute DB path located next to this module so callers get the
# same database regardless of the current working directory when running
# scripts or tests. SHOP_LAYOUT_DB overrides it.
from pathlib import Path

from .layouts import resolve_default_layout

BASE_DIR = Path(__file__).resolve().parent
DB_PATH = Path(os.getenv("SHOP_LAYOUT_DB", BASE_DIR / "shop_layouts.db"))


def get_connection():
    return sqlite3.connect(DB_PATH)


def init_db():
    conn = get_connection()
    cur = conn.cursor()

    #     User
    #   └── Shopping list (optionally tied to a shop)
    #         └── Items (area_name / order_index written by the sorter)
    #   └── Shop layout (per shop name, ordered areas)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS shopping_lists (
        list_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        shop_name TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS list_items (
        item_id TEXT PRIMARY KEY,
        list_id TEXT NOT NULL,
        name TEXT NOT NULL,
        quantity,
        area_name TEXT,
        order_index INTEGER,
        is_checked INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY(list_id) REFERENCES shopping_lists(list_id)
    );
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS shop_layout_areas (
        area_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        shop_name TEXT NOT NULL COLLATE NOCASE,
        area_name TEXT NOT NULL,
        sequence INTEGER NOT NULL,
        UNIQUE(user_id, shop_name, sequence),
        UNIQUE(user_id, shop_name, area_name)
    );
    """)

    conn.commit()
    conn.close()


def _area_rows(rows):
    return [{"area_name": row[0], "sequence": row[1]} for row in rows]


def _insert_layout(cur, user_id: str, shop_name: str, areas, or_ignore: bool = False):
    verb = "INSERT OR IGNORE" if or_ignore else "INSERT"
    for sequence, area_name in enumerate(areas, start=1):
        cur.execute(f"""
            {verb} INTO shop_layout_areas (user_id, shop_name, area_name, sequence)
            VALUES (?, ?, ?, ?)
        """, (user_id, shop_name, area_name, sequence))


def fetch_layout(user_id: str, shop_name: str):
    """Return the ordered areas [{"area_name", "sequence"}] for a user's shop.

    Shop names match case-insensitively. When the user has no layout for the
    shop yet, one is seeded from the default presets, stored, and returned.
    """
    query = """
        SELECT area_name, sequence
        FROM shop_layout_areas
        WHERE user_id = ? AND shop_name = ?
        ORDER BY sequence ASC
    """
    conn = get_connection()
    try:
        cur = conn.cursor()
        cur.execute(query, (user_id, shop_name))
        rows = cur.fetchall()
        if rows:
            return _area_rows(rows)

        # Concurrent first fetches seed identical rows; duplicates are ignored.
        template = resolve_default_layout(shop_name)
        with conn:
            _insert_layout(cur, user_id, shop_name, template, or_ignore=True)
        cur.execute(query, (user_id, shop_name))
        return _area_rows(cur.fetchall())
    finally:
        conn.close()


def save_layout(user_id: str, shop_name: str, areas):
    """Replace the user's layout for a shop with `areas`, in walking order."""
    conn = get_connection()
    try:
        with conn:
            cur = conn.cursor()
            cur.execute("""
                DELETE FROM shop_layout_areas
                WHERE user_id = ? AND shop_name = ?
            """, (user_id, shop_name))
            _insert_layout(cur, user_id, shop_name, areas)
    finally:
        conn.close()
    return [{"area_name": name, "sequence": seq} for seq, name in enumerate(areas, start=1)]


def create_list(user_id: str, title: str, shop_name: str = None):
    title = title.strip()
    if not title:
        raise ValueError("List title is required")

    list_id = uuid.uuid4().hex
    conn = get_connection()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO shopping_lists (list_id, user_id, title, shop_name)
        VALUES (?, ?, ?, ?)
    """, (list_id, user_id, title, shop_name))
    conn.commit()
    conn.close()

    return {
        "list_id": list_id,
        "user_id": user_id,
        "title": title,
        "shop_name": shop_name,
    }


def _item_row(row):
    return {
        "id": row[0],
        "list_id": row[1],
        "name": row[2],
        "quantity": row[3],
        "area_name": row[4],
        "order_index": row[5],
        "is_checked": bool(row[6]),
    }


def get_list_items(list_id: str):
    """Items of a list, unsorted (NULL order) first, then by order_index, newest first on ties."""
    conn = get_connection()
    cur = conn.cursor()
    cur.execute("""
        SELECT item_id, list_id, name, quantity, area_name, order_index, is_checked
        FROM list_items
        WHERE list_id = ?
        ORDER BY order_index ASC, created_at DESC, rowid DESC
    """, (list_id,))
    rows = cur.fetchall()
    conn.close()
    return [_item_row(row) for row in rows]


def add_item(list_id: str, name: str, quantity=None, area_name: str = None, order_index: int = None):
    name = name.strip()
    if not name:
        raise ValueError("Item name is required")

    conn = get_connection()
    cur = conn.cursor()

    cur.execute("SELECT list_id FROM shopping_lists WHERE list_id = ?", (list_id,))
    if not cur.fetchone():
        conn.close()
        raise ValueError(f"List '{list_id}' not found.")

    if order_index is None:
        cur.execute("SELECT COUNT(*) FROM list_items WHERE list_id = ?", (list_id,))
        order_index = cur.fetchone()[0] + 1

    item_id = uuid.uuid4().hex
    cur.execute("""
        INSERT INTO list_items (item_id, list_id, name, quantity, area_name, order_index)
        VALUES (?, ?, ?, ?, ?, ?)
    """, (item_id, list_id, name, quantity, area_name, order_index))
    conn.commit()
    conn.close()

    return {
        "id": item_id,
        "list_id": list_id,
        "name": name,
        "quantity": quantity,
        "area_name": area_name,
        "order_index": order_index,
        "is_checked": False,
    }


def set_item_checked(item_id: str, is_checked: bool):
    conn = get_connection()
    try:
        with conn:
            cur = conn.cursor()
            cur.execute("UPDATE list_items SET is_checked = ? WHERE item_id = ?",
                        (int(bool(is_checked)), item_id))
            if cur.rowcount == 0:
                raise ValueError(f"Item '{item_id}' not found.")
    finally:
        conn.close()


def apply_sorted_order(list_id: str, sorted_rows):
    """Write a batch of {"id", "area_name", "order_index"} onto the list's items.

    All updates land in a single transaction. Rows for ids outside the list
    are ignored. Returns the list's items in their new order.
    """
    conn = get_connection()
    try:
        with conn:
            cur = conn.cursor()
            for row in sorted_rows:
                cur.execute("""
                    UPDATE list_items
                    SET area_name = ?, order_index = ?
                    WHERE item_id = ? AND list_id = ?
                """, (row.get("area_name"), row.get("order_index"), row["id"], list_id))
    finally:
        conn.close()
    return get_list_items(list_id)


if __name__ == "__main__":
    init_db()
    print("SQLite DB path:", os.path.abspath(DB_PATH))
