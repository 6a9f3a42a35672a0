"""Repositories package: every SQLAlchemy query lives here.

Files:
  base.py     - generic CRUD + soft-deactivation
  vendor.py   - vendor directory lookups and name normalisation
  student.py  - student registry queries, meal history, deactivation sweep
  meal.py     - meal ledger (claims)
  user.py     - login accounts
"""
