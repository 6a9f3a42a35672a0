"""Services package - all business logic lives here, never in routers.

Files:
  roster.py        - CSV parsing and roster reconciliation (used by /api/admin/upload-csv and the CLI)
  verification.py  - meal-claim verification, history and stats
  vendor.py        - vendor directory and dashboards
  student.py       - student registry and "my QR code"
  auth.py          - registration, login, admin user creation
  admin.py         - exports, stats, bulk maintenance
  qr.py            - QR PNG rendering

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
