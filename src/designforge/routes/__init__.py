"""
Routes Package
Handles all application routes organized by type.
"""

from .api import core_bp, deploy_bp, gen_bp

__all__ = ['core_bp', 'deploy_bp', 'gen_bp']
