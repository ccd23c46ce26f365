#!/usr/bin/env python3
"""Supabase database setup script for BiteBoard.

This script outputs the SQL needed to create the analysis cache table in Supabase.
Copy the SQL output and run it in the Supabase SQL Editor.

Usage:
    # Print all SQL to console
    python scripts/setup_supabase.py

    # Print SQL and save to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify the table exists
    python scripts/setup_supabase.py --verify

Tables Created:
    - cafe_ai_cache: Cached dish analyses keyed by place_id
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime

# =============================================================================
# SQL Schema Definitions
# =============================================================================

SCHEMA_SQL = """
-- =============================================================================
-- BiteBoard Database Schema for Supabase
-- =============================================================================
-- Generated: {generated_at}
--
-- Instructions:
-- 1. Open your Supabase project dashboard
-- 2. Go to SQL Editor
-- 3. Paste this entire script
-- 4. Click "Run" to execute
-- =============================================================================

-- =============================================================================
-- Table: {table}
-- =============================================================================
-- One row per place. Rows are upserted on place_id; only successful,
-- non-empty analyses are stored. Rows older than ANALYSIS_CACHE_TTL_DAYS
-- are ignored by the API and overwritten on the next analysis.
-- =============================================================================

CREATE TABLE IF NOT EXISTS {table} (
    place_id TEXT PRIMARY KEY,
    analysis_json JSONB NOT NULL DEFAULT '[]'::jsonb,
    last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW(),

    CONSTRAINT {table}_place_id_not_empty CHECK (place_id <> ''),
    CONSTRAINT {table}_analysis_is_array CHECK (jsonb_typeof(analysis_json) = 'array')
);

CREATE INDEX IF NOT EXISTS idx_{table}_last_updated ON {table}(last_updated);

-- Server-side access only (service key); no public policies
ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;
"""

PURGE_SQL = """
-- Remove cache rows older than the TTL (optional housekeeping)
DELETE FROM {table} WHERE last_updated < NOW() - INTERVAL '{ttl_days} days';
"""

DROP_TABLES_SQL = """
-- WARNING: This will delete all cached analyses!
DROP TABLE IF EXISTS {table} CASCADE;
"""


# =============================================================================
# Verification
# =============================================================================


async def verify_tables() -> dict:
    """Verify that the cache table exists and is accessible."""
    try:
        from supabase import create_client

        from biteboard.config.settings import get_settings

        settings = get_settings()
        if not settings.supabase_configured:
            return {
                'success': False,
                'error': 'SUPABASE_URL and SUPABASE_KEY must be set',
            }

        supabase = create_client(
            settings.supabase_url,
            settings.supabase_key.get_secret_value(),
        )

        table = settings.analysis_cache_table
        results = {
            'success': True,
            'tables': {},
            'missing': [],
            'errors': [],
        }

        try:
            response = supabase.table(table).select('place_id').limit(1).execute()
            results['tables'][table] = {
                'exists': True,
                'accessible': True,
                'row_count': len(response.data) if response.data else 0,
            }
        except Exception as e:
            error_str = str(e)
            if 'does not exist' in error_str.lower() or 'relation' in error_str.lower():
                results['tables'][table] = {'exists': False, 'accessible': False}
                results['missing'].append(table)
            else:
                results['tables'][table] = {
                    'exists': 'unknown',
                    'accessible': False,
                    'error': error_str[:100],
                }
                results['errors'].append(f"{table}: {error_str[:100]}")
            results['success'] = False

        return results

    except Exception as e:
        return {
            'success': False,
            'error': str(e),
        }


def print_verification_results(results: dict) -> None:
    """Print verification results in a formatted way."""
    print("\n" + "=" * 70)
    print("Supabase Table Verification Results")
    print("=" * 70)

    if 'error' in results:
        print(f"\nError: {results['error']}")
        return

    print(f"\nOverall Status: {'PASS' if results['success'] else 'FAIL'}")
    print("-" * 70)

    for table, info in results.get('tables', {}).items():
        status = "OK" if info.get('exists') and info.get('accessible') else "MISSING"
        icon = "[+]" if status == "OK" else "[-]"
        print(f"  {icon} {table}: {status}")
        if info.get('error'):
            print(f"      Error: {info['error']}")

    if results.get('missing'):
        print("\nRun this script without --verify to get the SQL to create missing tables.")

    print("\n" + "=" * 70)


# =============================================================================
# Main Functions
# =============================================================================


def get_sql(sql_type: str = 'setup', table: str = 'cafe_ai_cache', ttl_days: int = 30) -> str:
    """Get the requested SQL for the cache table."""
    if sql_type == 'setup':
        return SCHEMA_SQL.format(
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            table=table,
        )
    if sql_type == 'purge':
        return PURGE_SQL.format(table=table, ttl_days=ttl_days)
    if sql_type == 'drop':
        return DROP_TABLES_SQL.format(table=table)
    raise ValueError(f"Unknown SQL type: {sql_type}")


def main():
    """Main entry point for the setup script."""
    parser = argparse.ArgumentParser(
        description='Generate Supabase setup SQL for BiteBoard',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print setup SQL to console
    python scripts/setup_supabase.py

    # Save purge SQL for a 14 day TTL
    python scripts/setup_supabase.py --type purge --ttl-days 14 -o purge.sql

    # Verify the table exists
    python scripts/setup_supabase.py --verify
        """,
    )
    parser.add_argument('--output', '-o', type=str, help='Save SQL to file instead of printing')
    parser.add_argument(
        '--type', '-t',
        type=str,
        choices=['setup', 'purge', 'drop'],
        default='setup',
        help='Type of SQL to generate (default: setup)',
    )
    parser.add_argument('--table', type=str, default='cafe_ai_cache', help='Cache table name')
    parser.add_argument('--ttl-days', type=int, default=30, help='TTL used by purge SQL')
    parser.add_argument(
        '--verify', '-v',
        action='store_true',
        help='Verify that the cache table exists in Supabase',
    )

    args = parser.parse_args()

    if args.verify:
        import asyncio
        results = asyncio.run(verify_tables())
        print_verification_results(results)
        sys.exit(0 if results.get('success') else 1)

    sql = get_sql(args.type, table=args.table, ttl_days=args.ttl_days)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(sql)
        print(f"SQL saved to: {args.output}")
    else:
        print(sql)


if __name__ == '__main__':
    main()
