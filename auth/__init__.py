"""auth/ -- Authentication for ContactVault: credentials, sessions, reset tokens.

Layer rule: auth/ imports stdlib, third-party libraries, core/ and notify/.
It does NOT import from api/ or contacts/.
api/ imports from auth/, not the other way around.
"""
