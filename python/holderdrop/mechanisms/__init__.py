"""Ledger mechanisms."""
