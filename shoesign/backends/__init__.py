"""Concrete storage backends for the event ledger."""
