"""v1 router package - all /api/* endpoints live here.

Files:
  auth.py          - /auth (register, login, me, logout, create-user)
  students.py      - /students
  vendors.py       - /vendors
  verification.py  - /verification
  admin.py         - /admin (admin role only)

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to scan2go/services/.
"""
