"""Token aggregator backend."""
