#!/usr/bin/env python3
"""
Import learner state previously written by export_progress.py
"""

import json
import os
import sys
from pathlib import Path

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from langtrainer.core.database.database_manager import DatabaseManager  # noqa: E402


def import_progress_data(json_path: str, db_path: str) -> bool:
    """Replace stored namespaces with the ones found in the export file"""
    try:
        print(f"📖 Loading data from {json_path}")
        with open(json_path, encoding="utf-8") as f:
            data = json.load(f)

        namespaces = data.get("namespaces", {})
        if not isinstance(namespaces, dict):
            print("❌ Export file has no 'namespaces' mapping")
            return False

        documents = {
            namespace: value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
            for namespace, value in namespaces.items()
        }

        print(f"🔗 Connecting to database {db_path}")
        db_manager = DatabaseManager(db_path)
        db_manager.init_database()
        written = db_manager.import_state(documents)

        print(f"✅ Imported {written} namespaces")
        return True

    except Exception as e:
        print(f"❌ Import failed: {e}")
        return False


def main():
    """Main import function"""
    if len(sys.argv) != 3:
        print("Usage: python import_progress.py <input_json_path> <database_path>")
        sys.exit(1)

    json_path = sys.argv[1]
    db_path = sys.argv[2]

    if not Path(json_path).exists():
        print(f"❌ Export file not found: {json_path}")
        sys.exit(1)

    if import_progress_data(json_path, db_path):
        print("🎉 Import completed successfully!")
        sys.exit(0)
    else:
        print("💥 Import failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
