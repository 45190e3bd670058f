import sys
from .db import init_db, save_layout

def main():
    if len(sys.argv) != 4:
        print("Usage: python -m backend.app.save_layout <user_id> <shop_name> <area1,area2,...>")
        sys.exit(1)

    user_id = sys.argv[1]
    shop_name = sys.argv[2]
    areas = [a.strip() for a in sys.argv[3].split(",") if a.strip()]
    if len(set(areas)) != len(areas):
        print("Area names must be unique within a layout")
        sys.exit(1)

    init_db()
    saved = save_layout(user_id, shop_name, areas)
    print(f"Layout saved: {shop_name} ({user_id}) → " + " -> ".join(a["area_name"] for a in saved))

if __name__ == "__main__":
    main()
