"""Cache stores, entries and freshness policy."""
