#!/usr/bin/env python3
# scripts/setup_platform.py
"""
Platform setup.
This script is safe to run many times (idempotent), except --create-tenant
which refuses to create a second tenant with the same slug.

Examples:
  # Load/refresh the permission catalog
  python -m scripts.setup_platform --init-catalog

  # Ensure a platform admin (id should match the hosted auth user)
  python -m scripts.setup_platform --ensure-platform-admin --email admin@agency.local --member-id <uuid>

  # New agency with its system roles and an owner
  python -m scripts.setup_platform --create-tenant "Velvet Agency" --owner-email owner@velvet.local \
    --owner-name "Velvet Owner" --owner-id <uuid>

  # Print a development token for a member
  python -m scripts.setup_platform --issue-token <member-uuid>
"""

from __future__ import annotations

import argparse
import logging
import sys
from uuid import UUID

from agencyhub.core.database import session_scope
from agencyhub.core.security import create_access_token
from agencyhub.models import registry  # noqa: F401
from agencyhub.services.seed_service import seed_permission_catalog
from agencyhub.services.tenant_service import create_tenant, ensure_platform_admin

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="AgencyHub platform setup")
    p.add_argument("--init-catalog", action="store_true", help="Upsert the permission catalog")
    p.add_argument("--ensure-platform-admin", action="store_true", help="Ensure a platform admin exists")
    p.add_argument("--email", type=str, help="Platform admin email")
    p.add_argument("--member-id", type=UUID, default=None, help="Platform admin id (hosted auth user id)")

    p.add_argument("--create-tenant", type=str, metavar="NAME", help="Create an agency with this name")
    p.add_argument("--slug", type=str, default=None, help="Agency slug (default: derived from name)")
    p.add_argument("--owner-email", type=str, help="Owner email for --create-tenant")
    p.add_argument("--owner-name", type=str, default="Owner", help="Owner display name")
    p.add_argument("--owner-id", type=UUID, default=None, help="Owner id (hosted auth user id)")

    p.add_argument("--issue-token", type=UUID, metavar="MEMBER_ID", help="Print a dev bearer token")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO)

    if not (args.init_catalog or args.ensure_platform_admin or args.create_tenant or args.issue_token):
        print("Nothing to do. Use --init-catalog, --ensure-platform-admin, --create-tenant or --issue-token.")
        sys.exit(1)

    if args.ensure_platform_admin and not args.email:
        raise SystemExit("--ensure-platform-admin needs --email")
    if args.create_tenant and not args.owner_email:
        raise SystemExit("--create-tenant needs --owner-email")

    try:
        with session_scope() as db:
            # Catalog first: tenant roles grant rows from it.
            if args.init_catalog or args.create_tenant:
                perms = seed_permission_catalog(db)
                print(f"permission catalog ready ({len(perms)} codes)")

            if args.ensure_platform_admin:
                admin = ensure_platform_admin(db, email=args.email, member_id=args.member_id)
                print(f"platform admin ensured: {admin.email} ({admin.id})")

            if args.create_tenant:
                tenant, owner = create_tenant(
                    db,
                    name=args.create_tenant,
                    slug=args.slug,
                    owner_email=args.owner_email,
                    owner_name=args.owner_name,
                    owner_id=args.owner_id,
                )
                print(f"tenant created: {tenant.slug} ({tenant.id}); owner {owner.email} ({owner.id})")
    except Exception:
        logger.exception("Platform setup failed")
        raise

    if args.issue_token:
        print(create_access_token(str(args.issue_token)))


if __name__ == "__main__":
    main()
