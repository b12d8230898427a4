#!/usr/bin/env python3
"""
One-time rewrite of legacy workspace member lists.

WHAT:
    Workspaces created before roles existed store `members` as a bare list
    of user ids (some rows mix both shapes). This rewrites every legacy or
    mixed document into `[{"userId", "role"}]`: each bare id becomes
    `member` and the workspace owner becomes `owner`.

    The read path still accepts both shapes, so the migration can run while
    the API is serving traffic and can be re-run safely.

USAGE:
    cd backend
    python scripts/migrate_workspace_members.py --dry-run
    python scripts/migrate_workspace_members.py --batch-size 200

REFERENCES:
    - backend/workhub/access/membership.py (decode_members / encode_members)
    - backend/scripts/check_workspace_members.py (verify afterwards)
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

MIGRATABLE_FORMATS = ("legacy", "mixed")


def _to_structured(workspace):
    from workhub.access.membership import decode_members, encode_members, repair_owner_membership

    workspace.members = encode_members(decode_members(workspace.members))
    repair_owner_membership(workspace)
    return workspace


def migrate(dry_run: bool = False, batch_size: int = 500) -> int:
    from workhub.access.membership import detect_members_format
    from workhub.database import get_sync_session
    from workhub.models import Workspace
    from workhub.services.membership_store import mutate_workspace

    migrated = 0
    skipped_invalid = 0
    with get_sync_session() as db:
        offset = 0
        while True:
            batch = (
                db.query(Workspace.id, Workspace.members)
                .order_by(Workspace.id)
                .offset(offset)
                .limit(batch_size)
                .all()
            )
            if not batch:
                break
            offset += len(batch)

            for workspace_id, members in batch:
                fmt = detect_members_format(members)
                if fmt == "invalid":
                    skipped_invalid += 1
                    logger.warning("[MEMBERS] Workspace %s has an unreadable members document, skipping", workspace_id)
                    continue
                if fmt not in MIGRATABLE_FORMATS:
                    continue

                migrated += 1
                if dry_run:
                    logger.info("[MEMBERS] Would migrate workspace %s (%s, %d entries)", workspace_id, fmt, len(members))
                    continue
                mutate_workspace(db, workspace_id, _to_structured)
                logger.info("[MEMBERS] Migrated workspace %s from %s format", workspace_id, fmt)

    print("\n" + "=" * 60)
    print(f"   {'Would migrate' if dry_run else 'Migrated'}: {migrated}")
    print(f"   Skipped (invalid): {skipped_invalid}")
    print("=" * 60)
    return migrated


def main():
    parser = argparse.ArgumentParser(description="Rewrite legacy workspace member lists to {userId, role} objects")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing")
    parser.add_argument("--batch-size", type=int, default=500, help="Rows read per query")
    args = parser.parse_args()

    migrate(dry_run=args.dry_run, batch_size=args.batch_size)


if __name__ == "__main__":
    main()
