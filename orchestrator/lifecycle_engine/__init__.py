"""
Kubernetes lifecycle engine: service and cluster pause/resume.
"""

__version__ = "0.1.0"
