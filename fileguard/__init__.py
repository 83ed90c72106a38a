"""
File integrity verification and remediation service.
"""

__project__ = "fileguard"
__version__ = "0.1.0"
