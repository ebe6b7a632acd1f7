"""
CRM/ERP Sales Warehouse

Silver standardization and gold dimensional modeling on PySpark + Delta Lake:
- silver: per-entity cleaning, deduplication, effective dating, reconciliation
- gold: customer/product dimensions and the sales fact
- pipeline: the single refresh entry point
"""

__version__ = "0.1.0"
