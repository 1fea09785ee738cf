"""
Design Forge
============

Backend that turns exported design images into React components and
deploys them as preview projects.

Uses the factory pattern implemented in factory.py for application creation.
"""

__version__ = '0.1.0'


def create_app(*args, **kwargs):
    from designforge.factory import create_app as _create_app
    return _create_app(*args, **kwargs)
