"""Test helpers shared across test tiers."""
