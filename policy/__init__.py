"""policy/ -- Allowlist (accepted-risk policy) loading and validation.

Layer rule: policy/ imports from core/ (models, errors) and third-party
libraries only. It does NOT import from audit/.
"""
