"""auth/ -- Authentication and identity package for RecordVault.

Layer rule: auth/ imports stdlib, third-party libraries, and core/ (the
kernel). It does NOT import from api/ or records/.
api/ imports from auth/, not the other way around.
"""
