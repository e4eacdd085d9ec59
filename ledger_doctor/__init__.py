"""ledger-doctor: parse sales spreadsheet exports and reconcile them against a ledger."""

__version__ = "0.1.0"
