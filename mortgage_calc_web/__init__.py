"""HTTP API and calculation history for the mortgage calculator."""
