#!/usr/bin/env python3
"""
Workspace membership health report.

WHAT:
    Prints, for every workspace, the shape of its `members` document
    (empty / legacy / structured / mixed / invalid) and whether the owner
    is missing or mis-roled. Read-only.

USAGE:
    cd backend
    python scripts/check_workspace_members.py
    python scripts/check_workspace_members.py --only-problems

REFERENCES:
    - backend/workhub/access/membership.py (detect_members_format, needs_owner_repair)
    - backend/scripts/repair_workspace_members.py (fixes what this reports)
"""

import argparse
import logging
import os
import sys
from collections import Counter

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def check_workspaces(only_problems: bool = False) -> Counter:
    from workhub.access.membership import decode_members, detect_members_format, needs_owner_repair
    from workhub.database import get_sync_session
    from workhub.models import Workspace

    formats = Counter()
    with get_sync_session() as db:
        for workspace in db.query(Workspace).order_by(Workspace.created_at).all():
            fmt = detect_members_format(workspace.members)
            broken = needs_owner_repair(workspace)
            formats[fmt] += 1
            if broken:
                formats["needs_repair"] += 1

            if only_problems and fmt == "structured" and not broken:
                continue
            print(
                f"{workspace.id}  {workspace.name[:30]:<30}  format={fmt:<10}  "
                f"members={len(decode_members(workspace.members)):<4}  "
                f"{'NEEDS REPAIR' if broken else 'ok'}"
            )

    print("\n" + "=" * 60)
    for key, count in sorted(formats.items()):
        print(f"   {key}: {count}")
    print("=" * 60)
    return formats


def main():
    parser = argparse.ArgumentParser(description="Report workspace membership document health")
    parser.add_argument("--only-problems", action="store_true", help="Hide healthy structured workspaces")
    args = parser.parse_args()

    formats = check_workspaces(only_problems=args.only_problems)
    sys.exit(1 if formats.get("needs_repair") or formats.get("invalid") else 0)


if __name__ == "__main__":
    main()
