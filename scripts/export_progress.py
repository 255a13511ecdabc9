#!/usr/bin/env python3
"""
Export persisted learner state (review records, XP, course progress) to JSON
"""

import json
import os
import sys
from datetime import datetime
from pathlib import Path

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from langtrainer.core.database.database_manager import DatabaseManager  # noqa: E402


def export_progress_data(db_path: str, output_path: str) -> bool:
    """Export every stored namespace to a JSON file"""
    try:
        print(f"📖 Exporting learner state from {db_path}")
        db_manager = DatabaseManager(db_path)
        documents = db_manager.export_state()

        namespaces = {}
        for namespace, raw in documents.items():
            try:
                namespaces[namespace] = json.loads(raw)
            except json.JSONDecodeError:
                print(f"  ⚠️ Namespace '{namespace}' is not valid JSON, exported as text")
                namespaces[namespace] = raw

        export_data = {
            "export_info": {
                "exported_at": datetime.now().isoformat(),
                "database_path": db_path,
                "script_version": "1.0",
            },
            "namespaces": namespaces,
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(export_data, f, indent=2, ensure_ascii=False)

        print(f"✅ Successfully exported data to {output_path}")
        print(f"📊 Exported {len(namespaces)} namespaces: {', '.join(sorted(namespaces))}")
        return True

    except Exception as e:
        print(f"❌ Export failed: {e}")
        return False


def main():
    """Main export function"""
    if len(sys.argv) != 3:
        print("Usage: python export_progress.py <database_path> <output_json_path>")
        print("Example: python export_progress.py data/progress.db data/progress_backup.json")
        sys.exit(1)

    db_path = sys.argv[1]
    output_path = sys.argv[2]

    if not Path(db_path).exists():
        print(f"❌ Database file not found: {db_path}")
        sys.exit(1)

    if export_progress_data(db_path, output_path):
        print("🎉 Export completed successfully!")
        sys.exit(0)
    else:
        print("💥 Export failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
