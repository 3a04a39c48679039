"""
Secret Mirror Operator - A Kubernetes operator that mirrors Secrets across namespaces.

This operator keeps a copy of a Secret in the namespace where a SecretMirror
resource lives, sourced from the namespace the SecretMirror names:
- One-way, level-triggered synchronization
- Ownership-based protection of pre-existing Secrets
- Cleanup of mirrored Secrets when the source disappears
"""

__version__ = "0.1.0"
