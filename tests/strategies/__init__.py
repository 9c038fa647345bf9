"""Shared Hypothesis strategies and settings tiers."""
