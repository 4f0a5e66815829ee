"""
Home-care scheduling backend.

Layout:
- config.py        : environment settings and logging setup
- db.py            : engines and SQLAlchemy sessions (application store + identity store)
- models.py        : ORM models of the application store
- auth_models.py   : ORM model of the identity store
- repositories.py  : CRUD facade per entity
- notifications.py : notification side effects and read/query operations
- appointments.py  : appointment lifecycle (pending/confirmed)
- medications.py   : medication CRUD with patient notifications
- people.py        : patient and employee profiles
- auth_*.py        : password hashing, tokens, registration and accounts
- api_*.py         : REST API (FastAPI)
- seed.py / cli.py : demo data and operator CLI
"""
