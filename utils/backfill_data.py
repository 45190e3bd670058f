import csv
import sys
from collections import OrderedDict
from pathlib import Path

# Add the repository root to sys.path so we can import backend modules
REPO_ROOT = Path(__file__).resolve().parent.parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from backend.app.db import init_db, save_layout

# CSV file is in the same directory as this script
CSV_PATH = Path(__file__).parent / "shop_layouts.csv"


def read_layouts(path):
    """Group CSV rows (user_id, shop_name, area_name, sequence) into ordered layouts.

    Returns an OrderedDict keyed by (user_id, shop_name) with area names sorted
    by sequence. Rows with a blank user, shop or area are skipped, as are rows
    whose sequence is not an integer.
    """
    layouts = OrderedDict()

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)

        for row in reader:
            user_id = (row.get("user_id") or "").strip()
            shop_name = (row.get("shop_name") or "").strip()
            area_name = (row.get("area_name") or "").strip()
            if not (user_id and shop_name and area_name):
                continue
            try:
                sequence = int(row.get("sequence", ""))
            except (TypeError, ValueError):
                continue
            layouts.setdefault((user_id, shop_name), []).append((sequence, area_name))

    result = OrderedDict()
    for key, rows in layouts.items():
        names = []
        for _seq, name in sorted(rows, key=lambda r: r[0]):
            if name not in names:
                names.append(name)
        result[key] = names
    return result


def import_csv(path):
    count = 0
    for (user_id, shop_name), areas in read_layouts(path).items():
        save_layout(user_id, shop_name, areas)
        count += 1

    print(f"Imported {count} layouts into shop_layout_areas.")
    return count


if __name__ == "__main__":
    init_db()
    import_csv(sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
