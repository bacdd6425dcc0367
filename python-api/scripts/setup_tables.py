#!/usr/bin/env python3
"""
ZeroDB Table Creation Script

Creates the seven document tables used by the DotHack Backend.
Supports dry-run mode and idempotent execution.

Usage (from python-api/):
    python -m scripts.setup_tables --dry-run   # Preview tables
    python -m scripts.setup_tables --apply     # Create tables
"""

import argparse
import asyncio
import sys

from integrations.zerodb.client import ZeroDBClient
from integrations.zerodb.dependencies import build_zerodb_client
from integrations.zerodb.exceptions import ZeroDBError


# ANSI color codes
class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    BOLD = '\033[1m'
    END = '\033[0m'


TIMESTAMP = {"type": "timestamp"}

TABLE_SCHEMAS = {
    "users": {
        "description": "Accounts, profiles and notification preferences",
        "schema": {
            "fields": {
                "user_id": {"type": "uuid", "primary_key": True},
                "email": {"type": "text", "unique": True, "required": True},
                "password_hash": {"type": "text", "required": True},
                "name": {"type": "text", "required": True},
                "role": {
                    "type": "text",
                    "check": "role IN ('participant', 'judge', 'admin', 'mentor')",
                },
                "bio": {"type": "text"},
                "avatar": {"type": "text"},
                "skills": {"type": "jsonb"},
                "experience_level": {"type": "text"},
                "social_links": {"type": "jsonb"},
                "notification_preferences": {"type": "jsonb"},
                "is_active": {"type": "boolean", "default": True},
                "last_login": TIMESTAMP,
                "created_at": TIMESTAMP,
                "updated_at": TIMESTAMP,
            },
            "indexes": ["email", "role", "is_active"],
        },
    },

    "hackathons": {
        "description": "Hackathon events, schedule and judging configuration",
        "schema": {
            "fields": {
                "hackathon_id": {"type": "uuid", "primary_key": True},
                "name": {"type": "text", "required": True},
                "slug": {"type": "text", "unique": True},
                "tagline": {"type": "text"},
                "description": {"type": "text"},
                "organizer_id": {"type": "uuid"},
                "registration_start": TIMESTAMP,
                "registration_end": TIMESTAMP,
                "hackathon_start": TIMESTAMP,
                "hackathon_end": TIMESTAMP,
                "judging_start": TIMESTAMP,
                "judging_end": TIMESTAMP,
                "results_announcement": TIMESTAMP,
                "status": {"type": "text"},
                "visibility": {
                    "type": "text",
                    "check": "visibility IN ('public', 'private', 'invite_only')",
                },
                "max_participants": {"type": "integer", "default": 0},
                "min_team_size": {"type": "integer"},
                "max_team_size": {"type": "integer"},
                "location": {"type": "jsonb"},
                "categories": {"type": "jsonb"},
                "prizes": {"type": "jsonb"},
                "resources": {"type": "jsonb"},
                "submission_requirements": {"type": "jsonb"},
                "judging_criteria": {"type": "jsonb"},
                "allow_late_submissions": {"type": "boolean", "default": False},
                "created_at": TIMESTAMP,
                "updated_at": TIMESTAMP,
            },
            "indexes": ["slug", "visibility", "hackathon_start"],
        },
    },

    "projects": {
        "description": "Projects with their embedded team roster",
        "schema": {
            "fields": {
                "project_id": {"type": "uuid", "primary_key": True},
                "hackathon_id": {"type": "uuid", "required": True},
                "title": {"type": "text", "required": True},
                "description": {"type": "text"},
                "problem_statement": {"type": "text"},
                "solution": {"type": "text"},
                "category": {"type": "text"},
                "status": {"type": "text"},
                "team": {"type": "jsonb"},
                "tech_stack": {"type": "jsonb"},
                "tags": {"type": "jsonb"},
                "repo_url": {"type": "text"},
                "demo_url": {"type": "text"},
                "video_url": {"type": "text"},
                "screenshots": {"type": "jsonb"},
                "likes": {"type": "jsonb"},
                "views": {"type": "integer", "default": 0},
                "average_score": {"type": "real", "default": 0},
                "is_public": {"type": "boolean", "default": True},
                "is_deleted": {"type": "boolean", "default": False},
                "submission_date": TIMESTAMP,
                "created_by": {"type": "uuid"},
                "created_at": TIMESTAMP,
                "updated_at": TIMESTAMP,
            },
            "indexes": ["hackathon_id", "status", "team.user_id", "created_at"],
        },
    },

    "teams": {
        "description": "Matchmaking teams with member slots and invitations",
        "schema": {
            "fields": {
                "team_id": {"type": "uuid", "primary_key": True},
                "hackathon_id": {"type": "uuid", "required": True},
                "name": {"type": "text", "required": True},
                "slug": {"type": "text"},
                "description": {"type": "text"},
                "members": {"type": "jsonb"},
                "max_members": {"type": "integer", "default": 4},
                "looking_for": {"type": "jsonb"},
                "required_skills": {"type": "jsonb"},
                "commitment_level": {"type": "text"},
                "availability": {"type": "text"},
                "category": {"type": "text"},
                "status": {
                    "type": "text",
                    "check": "status IN ('forming', 'active', 'completed', 'disbanded')",
                },
                "is_public": {"type": "boolean", "default": True},
                "is_open_to_members": {"type": "boolean", "default": True},
                "project_id": {"type": "uuid"},
                "total_invites_sent": {"type": "integer", "default": 0},
                "chat_room_id": {"type": "text"},
                "created_by": {"type": "uuid"},
                "created_at": TIMESTAMP,
                "updated_at": TIMESTAMP,
            },
            "indexes": ["hackathon_id", "status", "members.user_id"],
        },
    },

    "submissions": {
        "description": "Judged submissions with score aggregates and versions",
        "schema": {
            "fields": {
                "submission_id": {"type": "uuid", "primary_key": True},
                "project_id": {"type": "uuid", "required": True, "unique": True},
                "hackathon_id": {"type": "uuid", "required": True},
                "team_id": {"type": "uuid"},
                "submitted_by": {"type": "uuid"},
                "title": {"type": "text", "required": True},
                "summary": {"type": "text"},
                "description": {"type": "text"},
                "repo_url": {"type": "text"},
                "demo_url": {"type": "text"},
                "video_url": {"type": "text"},
                "presentation_url": {"type": "text"},
                "assets": {"type": "jsonb"},
                "deployment": {"type": "jsonb"},
                "technologies": {"type": "jsonb"},
                "status": {"type": "text"},
                "judges": {"type": "jsonb"},
                "scores": {"type": "jsonb"},
                "total_score": {"type": "real", "default": 0},
                "average_score": {"type": "real", "default": 0},
                "is_late": {"type": "boolean", "default": False},
                "disqualified": {"type": "boolean", "default": False},
                "disqualification_reason": {"type": "text"},
                "version": {"type": "integer", "default": 1},
                "previous_versions": {"type": "jsonb"},
                "submitted_at": TIMESTAMP,
                "reviewed_at": TIMESTAMP,
                "created_at": TIMESTAMP,
                "updated_at": TIMESTAMP,
            },
            "indexes": ["project_id", "hackathon_id", "status", "total_score"],
        },
    },

    "notifications": {
        "description": "Per-account notifications with typed metadata",
        "schema": {
            "fields": {
                "notification_id": {"type": "uuid", "primary_key": True},
                "user_id": {"type": "uuid", "required": True},
                "type": {"type": "text", "required": True},
                "title": {"type": "text", "required": True},
                "message": {"type": "text"},
                "metadata": {"type": "jsonb"},
                "priority": {
                    "type": "text",
                    "check": "priority IN ('low', 'medium', 'high', 'urgent')",
                },
                "sender_id": {"type": "uuid"},
                "team_id": {"type": "uuid"},
                "project_id": {"type": "uuid"},
                "hackathon_id": {"type": "uuid"},
                "action_link": {"type": "text"},
                "action_text": {"type": "text"},
                "is_read": {"type": "boolean", "default": False},
                "read_at": TIMESTAMP,
                "is_archived": {"type": "boolean", "default": False},
                "expires_at": TIMESTAMP,
                "created_at": TIMESTAMP,
            },
            "indexes": ["user_id", "is_read", "expires_at", "created_at"],
        },
    },

    "messages": {
        "description": "Chat messages for team, project, direct and group rooms",
        "schema": {
            "fields": {
                "message_id": {"type": "uuid", "primary_key": True},
                "room_id": {"type": "text", "required": True},
                "room_type": {"type": "text", "required": True},
                "sender_id": {"type": "uuid", "required": True},
                "type": {"type": "text"},
                "content": {"type": "text", "required": True},
                "attachments": {"type": "jsonb"},
                "parent_message_id": {"type": "uuid"},
                "thread_count": {"type": "integer", "default": 0},
                "reactions": {"type": "jsonb"},
                "read_by": {"type": "jsonb"},
                "delivered": {"type": "boolean", "default": False},
                "delivered_at": TIMESTAMP,
                "edited": {"type": "boolean", "default": False},
                "edited_at": TIMESTAMP,
                "deleted": {"type": "boolean", "default": False},
                "deleted_at": TIMESTAMP,
                "pinned": {"type": "boolean", "default": False},
                "created_at": TIMESTAMP,
            },
            "indexes": ["room_id", "created_at", "parent_message_id"],
        },
    },
}


def print_header(message: str):
    """Print colored header."""
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.BLUE}{message:^70}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.END}\n")


def print_success(message: str):
    print(f"{Colors.GREEN}✓ {message}{Colors.END}")


def print_warning(message: str):
    print(f"{Colors.YELLOW}⚠ {message}{Colors.END}")


def print_error(message: str):
    print(f"{Colors.RED}✗ {message}{Colors.END}")


def print_info(message: str):
    print(f"{Colors.BLUE}ℹ {message}{Colors.END}")


async def existing_table_names(client: ZeroDBClient) -> set:
    """Names of the tables already present in the project."""
    return {table.get("name") for table in await client.tables.list()}


async def create_table(
    client: ZeroDBClient,
    table_name: str,
    table_config: dict,
    dry_run: bool = False,
) -> bool:
    """
    Create a single table in ZeroDB.

    Returns:
        True if created (or would be created in dry-run mode)
    """
    fields = table_config["schema"]["fields"]
    if dry_run:
        print_info(f"Would create table: {table_name}")
        print(f"  Description: {table_config['description']}")
        print(f"  Fields: {len(fields)} columns")
        print(f"  Indexes: {', '.join(table_config['schema'].get('indexes', []))}")
        return True

    try:
        await client.tables.create(
            name=table_name,
            schema=table_config["schema"],
            description=table_config["description"],
        )
    except ZeroDBError as e:
        print_error(f"Failed to create table {table_name}: {e}")
        return False

    print_success(f"Created table: {table_name}")
    return True


async def setup_tables(dry_run: bool) -> int:
    """Create every missing table. Returns the number of failures."""
    existing: set = set()
    client = None
    if not dry_run:
        try:
            client = build_zerodb_client()
        except ValueError as e:
            print_error(f"Failed to configure ZeroDB: {e}")
            print_info("Make sure ZERODB_API_KEY and ZERODB_PROJECT_ID are set")
            return 1
        print_info("Checking for existing tables...")
        existing = await existing_table_names(client)
        if existing:
            print_warning(f"Found {len(existing)} existing tables: {', '.join(sorted(existing))}")

    created = skipped = failed = 0
    try:
        for table_name, table_config in TABLE_SCHEMAS.items():
            if table_name in existing:
                print_warning(f"Skipped table (already exists): {table_name}")
                skipped += 1
                continue
            if await create_table(client, table_name, table_config, dry_run):
                created += 1
            else:
                failed += 1
    finally:
        if client is not None:
            await client.close()

    print_header("Summary")
    if dry_run:
        print_info(f"Would create: {created} tables")
    else:
        print_success(f"Created: {created} tables")
        if skipped:
            print_warning(f"Skipped: {skipped} tables (already exist)")
        if failed:
            print_error(f"Failed: {failed} tables")
    return failed


def main() -> None:
    parser = argparse.ArgumentParser(description="Create ZeroDB tables for DotHack Backend")
    parser.add_argument(
        "--dry-run", action="store_true", help="Preview tables without creating them"
    )
    parser.add_argument("--apply", action="store_true", help="Create tables in ZeroDB")
    args = parser.parse_args()

    if not args.dry_run and not args.apply:
        parser.print_help()
        print_error("\nError: Must specify either --dry-run or --apply")
        sys.exit(1)

    mode = "DRY RUN MODE" if args.dry_run else "APPLY MODE"
    print_header(f"ZeroDB Table Setup - {mode}")

    failed = asyncio.run(setup_tables(dry_run=args.dry_run))
    if failed:
        sys.exit(1)
    print_success("Table setup complete!")


if __name__ == "__main__":
    main()
