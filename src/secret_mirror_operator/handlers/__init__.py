"""
Handlers package - Contains all Kopf event handlers for the operator.

This package organizes handlers by resource type:
- secret_mirror.py: SecretMirror reconciliation (create, resume, update, resync)
- secret.py: Secret watch that requests reconciles of affected SecretMirrors
"""
