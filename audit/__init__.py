"""audit/ -- npm audit report schemas, normalizers, and the format resolver.

Layer rule: audit/ imports from core/ (models, errors) and third-party
libraries only. It never reads files or runs processes; callers hand it text.
"""
