"""Settlement: one-time execution of a proposal's outcome and its rewards."""
