"""contacts/ -- Per-user contact book (models + SQLAlchemy store).

Layer rule: contacts/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, auth/, or notify/.
"""
