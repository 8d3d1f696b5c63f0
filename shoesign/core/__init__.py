"""
Core abstractions shared by every scheme: typed names, component bases and
the append-only event ledger.
"""
