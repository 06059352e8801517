"""Report ledger: one report per reporter per content item, counted per round."""
