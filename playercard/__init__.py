"""PlayerCard: Warcraft Logs player card enrichment service."""
