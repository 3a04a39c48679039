"""
Utils package - Utility modules for Secret Mirror operator functionality.

Contains helper modules for:
- Kubernetes API access (the SecretMirror/Secret store)
- Ownership checks on mirrored Secrets
- Secret payload encoding and comparison
"""
