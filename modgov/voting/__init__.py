"""Vote tally: append-only vote records and running weight sums."""
