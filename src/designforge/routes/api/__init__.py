"""
API Routes Package
==================

API routes organized by domain:
- core: service banner and health check
- generation: design image to component code (JSON and streamed)
- deployment: scaffold generated code and deploy it
"""

from .core import core_bp
from .deployment import deploy_bp
from .generation import gen_bp

__all__ = ['core_bp', 'deploy_bp', 'gen_bp']
