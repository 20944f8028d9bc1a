import logging
import sys

from touchbase.csv_import import import_csv

if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python run_import.py path/to/contacts.csv USER_ID")
        raise SystemExit(1)
    logging.basicConfig(level=logging.INFO)
    n = import_csv(sys.argv[1], sys.argv[2])
    print(f"Import complete: {n} contacts added.")
