"""
PersistQL CLI.

Usage:
    persistql build queries/ --output persisted_queries.json
    persistql inspect persisted_queries.json --verify
    persistql diff old.json new.json
    persistql hash "query getCount { count { amount } }"
"""

__cli_name__ = "persistql"
