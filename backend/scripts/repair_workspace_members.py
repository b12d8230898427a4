#!/usr/bin/env python3
"""
Restore owner membership on every workspace.

WHAT:
    Runs `repair_owner_membership` over all workspaces. Healthy rows are
    left untouched; each repaired row is committed on its own through the
    compare-and-swap store so concurrent API writes are not lost.

USAGE:
    cd backend
    python scripts/repair_workspace_members.py --dry-run
    python scripts/repair_workspace_members.py

REFERENCES:
    - backend/workhub/access/membership.py:repair_owner_membership
    - backend/workhub/services/membership_store.py:mutate_workspace
"""

import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def repair_all(dry_run: bool = False) -> int:
    """Return the number of workspaces that needed (or received) a repair."""
    from workhub.access.membership import needs_owner_repair, repair_owner_membership
    from workhub.database import get_sync_session
    from workhub.models import Workspace
    from workhub.services.membership_store import mutate_workspace

    fixed = 0
    with get_sync_session() as db:
        workspace_ids = [row[0] for row in db.query(Workspace.id).all()]
        for workspace_id in workspace_ids:
            workspace = db.query(Workspace).filter(Workspace.id == workspace_id).first()
            if workspace is None or not needs_owner_repair(workspace):
                continue

            fixed += 1
            if dry_run:
                logger.info("[REPAIR] Would repair workspace %s (%s)", workspace.id, workspace.name)
                continue
            mutate_workspace(db, workspace_id, repair_owner_membership)

    logger.info("[REPAIR] %s %d of %d workspaces", "Found" if dry_run else "Repaired", fixed, len(workspace_ids))
    return fixed


def main():
    parser = argparse.ArgumentParser(description="Ensure every workspace owner is a member with role owner")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing")
    args = parser.parse_args()

    fixed = repair_all(dry_run=args.dry_run)
    print(f"Workspaces {'needing repair' if args.dry_run else 'repaired'}: {fixed}")


if __name__ == "__main__":
    main()
