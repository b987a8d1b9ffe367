"""Command-line demo runners for the PPP estimator."""
