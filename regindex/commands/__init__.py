"""Click commands for the regindex CLI."""
