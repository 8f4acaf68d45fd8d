"""Scrape pipeline: remote job, matching, normalization, relocation, orchestration."""
