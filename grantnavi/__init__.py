"""
grantnavi
=========

Subsidy and grant discovery tooling: scrapers for national, prefectural and
municipal listing pages, CSV ingestion, and reconciliation of scraped
records into the hosted ``grants`` table.
"""

__all__ = [
    "config",
    "core",
    "ingest",
    "storage",
    "sync",
    "scrape",
    "maintenance",
    "api",
]
