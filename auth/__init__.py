"""auth/ -- Authentication and authorization package for ResortGate.

Layer rule: auth/ imports only stdlib + third-party libraries, plus the
core.db engine factory in auth/store.py.
It does NOT import from api/ or places/.
api/ imports from auth/, not the other way around.
"""
