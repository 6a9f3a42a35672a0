"""Pydantic schemas package.

Folder intent:
  common.py        - CamelModel base + HealthResponse (all schemas inherit CamelModel)
  vendor.py        - Vendor Directory DTOs and dashboard payloads
  student.py       - Student Registry DTOs, meal history, my-qr-code
  verification.py  - Verification request, structured result, history, stats
  roster.py        - CSV import reconciliation report
  auth.py          - Register / login / create-user
  admin.py         - Admin stats, export, bulk operations
"""
