"""Spot data model, formatting helpers and shared replay bookkeeping."""
