"""core/ -- Domain model, temporal rules, classifier, and presentation for audit-gate.

Layer rule: core/ is the kernel. models, errors, dates, and classifier import
only stdlib. pipeline.py is the one module that wires in audit/ and policy/.
"""
