"""
CRM/ERP Warehouse
# Gold layer

- Customer and product dimensions with dense surrogate keys
- Sales fact resolved by business key
- Read-only integrity checks
"""
