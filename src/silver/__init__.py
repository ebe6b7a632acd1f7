"""
CRM/ERP Warehouse
# Silver layer

- Bronze and silver table schemas
- Entity transformations (deduplication, effective dating, reconciliation)
- Per-entity full-refresh loader
"""
