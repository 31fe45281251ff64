"""
Data access for the reconciliation tables.

    settings.py     reconciliation_settings (read latest, seed)
    shipments.py    reconciliation_shipments (upsert, viewer queries)
    error_logs.py   reconciliation_error_logs (append, list)

Functions take an ``AsyncSession`` first and flush but never commit.
The caller owns the transaction: ``get_db`` in the API, or the
ResultStore / SettingsProvider session in the pipeline.
"""
