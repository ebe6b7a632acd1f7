"""
CRM/ERP Warehouse
# Shared utilities

- Spark session, catalog checks and atomic table publish
- Scalar field validators and their column wrappers
- Table-driven standardization rules
- Data quality metrics
"""
