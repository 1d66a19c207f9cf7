"""
Repository package for data access layers.

- asset_records: one row per stored media object (the asset record store)
- parents: the catalog entities that own media slots
"""
