"""Example: drive the service layer directly, without Flask.

Controllers only translate HTTP; every rule lives in the services, so a
script can mark and read attendance through the same container.
"""

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from campus_attendance.common.serialization import to_json
from campus_attendance.container import build_container


def main(student_id: int = 1) -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    print(to_json(container.stats_service.student_report(student_id)))


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 1)
