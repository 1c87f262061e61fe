#!/usr/bin/env python3
"""
Database setup script for OpenRank.

Creates the Supabase schema programmatically using direct PostgreSQL connection.

Usage:
    python setup/setup_database.py           # Create schema
    python setup/setup_database.py --verify  # Verify existing schema
    python setup/setup_database.py --drop    # Drop and recreate (DANGEROUS)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config_loader import load_config
from utils.logger import setup_logger

try:
    import psycopg2
except ImportError:
    print("Error: psycopg2 not installed. Run: pip install -e .")
    sys.exit(1)

logger = setup_logger(name=__name__)


CREATE_PROJECTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS projects (
    -- GitHub repository id
    id BIGINT PRIMARY KEY,

    name TEXT NOT NULL,
    full_name TEXT NOT NULL,
    description TEXT,
    rank INTEGER NOT NULL DEFAULT 0,
    tags TEXT[] NOT NULL DEFAULT '{}',
    stars INTEGER NOT NULL DEFAULT 0,
    forks INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'Active' CHECK (status IN ('Active', 'Archived')),
    language TEXT NOT NULL DEFAULT 'Unknown',
    category TEXT NOT NULL DEFAULT 'Other',
    contributors INTEGER NOT NULL DEFAULT 0,
    github_url TEXT,

    -- Last push/update on GitHub
    updated_at TIMESTAMPTZ,
    -- When the project entered the catalogue ("Newly Added")
    added_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

CREATE_DEVELOPERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS developers (
    id BIGSERIAL PRIMARY KEY,

    -- Stored lower-cased
    github_username TEXT NOT NULL UNIQUE,
    name TEXT,
    bio TEXT,
    avatar_url TEXT,
    profile_url TEXT,

    -- Score components (computed by the scoring service)
    pr_impact DOUBLE PRECISION NOT NULL DEFAULT 0,
    issue_impact DOUBLE PRECISION NOT NULL DEFAULT 0,
    dependency_influence DOUBLE PRECISION NOT NULL DEFAULT 0,
    project_longevity DOUBLE PRECISION NOT NULL DEFAULT 0,
    community_impact DOUBLE PRECISION NOT NULL DEFAULT 0,
    docs_impact DOUBLE PRECISION NOT NULL DEFAULT 0,
    consistency DOUBLE PRECISION NOT NULL DEFAULT 0,
    quality_multiplier DOUBLE PRECISION NOT NULL DEFAULT 1,
    final_impact_score DOUBLE PRECISION NOT NULL DEFAULT 0,

    -- Profile counters
    followers INTEGER NOT NULL DEFAULT 0,
    following INTEGER NOT NULL DEFAULT 0,
    public_repos INTEGER NOT NULL DEFAULT 0,
    total_prs INTEGER NOT NULL DEFAULT 0,
    total_commits INTEGER NOT NULL DEFAULT 0,
    total_issues INTEGER NOT NULL DEFAULT 0,
    total_lines_added BIGINT NOT NULL DEFAULT 0,
    total_lines_deleted BIGINT NOT NULL DEFAULT 0,
    total_contributions INTEGER NOT NULL DEFAULT 0,
    total_stars_received INTEGER NOT NULL DEFAULT 0,
    total_forks_received INTEGER NOT NULL DEFAULT 0,

    -- Location / affiliation
    country TEXT,
    city TEXT,
    location TEXT,
    company TEXT,
    profile_type TEXT,

    top_languages TEXT[] NOT NULL DEFAULT '{}',
    top_repositories TEXT[] NOT NULL DEFAULT '{}',
    active_projects INTEGER NOT NULL DEFAULT 0,
    years_active DOUBLE PRECISION NOT NULL DEFAULT 0,
    github_created_at TIMESTAMPTZ,
    last_active_at TIMESTAMPTZ,

    -- Metadata
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

CREATE_VISITS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS visits (
    id BIGSERIAL PRIMARY KEY,
    count INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

CREATE_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_projects_rank ON projects(rank);",
    "CREATE INDEX IF NOT EXISTS idx_projects_added_at ON projects(added_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_projects_category ON projects(category);",
    "CREATE INDEX IF NOT EXISTS idx_projects_language ON projects(language);",
    "CREATE INDEX IF NOT EXISTS idx_developers_score ON developers(final_impact_score DESC);",
    "CREATE INDEX IF NOT EXISTS idx_developers_country ON developers(lower(country));",
    "CREATE INDEX IF NOT EXISTS idx_developers_city ON developers(lower(city));",
    "CREATE INDEX IF NOT EXISTS idx_developers_company ON developers(lower(company));",
]

EXPECTED_TABLES = ["projects", "developers", "visits"]

EXPECTED_INDEXES = {
    "projects": ["idx_projects_rank", "idx_projects_added_at", "idx_projects_category", "idx_projects_language"],
    "developers": ["idx_developers_score", "idx_developers_country", "idx_developers_city",
                   "idx_developers_company"],
}

DROP_TABLE_SQL = (
    "DROP TABLE IF EXISTS visits CASCADE; "
    "DROP TABLE IF EXISTS developers CASCADE; "
    "DROP TABLE IF EXISTS projects CASCADE;"
)


def get_database_url(config) -> str:
    """
    Get PostgreSQL database URL.
    Uses DATABASE_URL from .env; the Supabase REST URL cannot be used for DDL.
    """
    if config.credentials.database_url:
        return config.credentials.database_url

    logger.error("DATABASE_URL is not set. OpenRank needs a direct Postgres connection to create tables.")
    logger.error("Copy the 'URI' connection string from Supabase (Project Settings → Database)")
    logger.error("and add it to .env as DATABASE_URL=postgresql://...")
    sys.exit(1)


def create_connection(database_url: str):
    """Open a psycopg2 connection or exit with a hint."""
    try:
        conn = psycopg2.connect(database_url)
    except psycopg2.Error as e:
        logger.error(f"✗ Could not connect to Postgres: {e}")
        logger.error("Check the DATABASE_URL password and that your IP is allowed by Supabase.")
        sys.exit(1)
    logger.info("✓ Connected to Postgres")
    return conn


def execute_sql(conn, sql_statement: str, description: str) -> bool:
    """Run one statement in its own transaction."""
    cursor = conn.cursor()
    try:
        cursor.execute(sql_statement)
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.error(f"✗ {description} failed: {e}")
        return False
    finally:
        cursor.close()

    logger.info(f"✓ {description}")
    return True


def verify_schema(conn) -> bool:
    """Verify that every table exists; missing indexes are reported as warnings."""
    try:
        cursor = conn.cursor()

        for table in EXPECTED_TABLES:
            cursor.execute("""
                SELECT EXISTS (
                    SELECT FROM information_schema.tables
                    WHERE table_name = %s
                );
            """, (table,))
            if not cursor.fetchone()[0]:
                logger.error(f"✗ Table '{table}' does not exist")
                cursor.close()
                return False
            logger.info(f"✓ Table '{table}' exists")

        for table, expected_indexes in EXPECTED_INDEXES.items():
            cursor.execute("SELECT indexname FROM pg_indexes WHERE tablename = %s;", (table,))
            indexes = {row[0] for row in cursor.fetchall()}
            missing = [idx for idx in expected_indexes if idx not in indexes]
            for idx in missing:
                logger.warning(f"⚠ Index '{idx}' missing on '{table}'")
            if not missing:
                logger.info(f"✓ All {len(expected_indexes)} indexes on '{table}' exist")

        cursor.close()
        return True

    except psycopg2.Error as e:
        logger.error(f"✗ Schema verification failed: {e}")
        return False


def create_schema(conn) -> bool:
    """Create the projects, developers and visits tables with their indexes."""
    tables = [
        (CREATE_PROJECTS_TABLE_SQL, "projects"),
        (CREATE_DEVELOPERS_TABLE_SQL, "developers"),
        (CREATE_VISITS_TABLE_SQL, "visits"),
    ]
    for statement, table in tables:
        if not execute_sql(conn, statement, f"Table '{table}'"):
            return False

    for idx_sql in CREATE_INDEXES_SQL:
        idx_name = idx_sql.split("INDEX IF NOT EXISTS ")[1].split(" ON")[0]
        if not execute_sql(conn, idx_sql, f"Index '{idx_name}'"):
            return False

    logger.info(f"✓ Schema ready ({len(tables)} tables, {len(CREATE_INDEXES_SQL)} indexes)")
    return True


def drop_schema(conn) -> bool:
    """Drop every OpenRank table after an interactive confirmation."""
    logger.warning(f"About to drop {', '.join(EXPECTED_TABLES)}. All leaderboard, catalogue and visit data will be lost.")

    if input("Type 'yes' to confirm: ").strip().lower() != "yes":
        logger.info("Drop cancelled")
        return False

    return execute_sql(conn, DROP_TABLE_SQL, f"Dropped {', '.join(EXPECTED_TABLES)}")


def main():
    parser = argparse.ArgumentParser(
        description="Create (or verify) the OpenRank Postgres schema"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Only check that tables and indexes exist"
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the tables before creating them (deletes all data)"
    )

    args = parser.parse_args()

    # Exits with field errors if the .env file is invalid
    config = load_config()
    conn = create_connection(get_database_url(config))

    try:
        if args.verify:
            ok = verify_schema(conn)
        elif args.drop and not drop_schema(conn):
            ok = False
        else:
            ok = create_schema(conn)
            if ok:
                logger.info("Next: python setup/setup_database.py --verify")
                logger.info("Then: python main.py index \"stars:>10000\" --limit 100")
    finally:
        conn.close()

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
