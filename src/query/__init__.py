"""Keys, fetch orchestration, invalidation, gating and hydration."""
