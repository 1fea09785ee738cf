"""Centralized path constants for prompt and scaffolding templates.

All code should import from here instead of hardcoding paths.
"""
from __future__ import annotations
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parents[1]  # .../src/designforge -> project root

# Jinja2 templates ship inside the package
TEMPLATES_DIR = PACKAGE_DIR / 'templates'
PROMPTS_DIR = TEMPLATES_DIR / 'prompts'
SCAFFOLD_DIR = TEMPLATES_DIR / 'scaffold'

# Runtime output (outside the package)
LOGS_DIR = PROJECT_ROOT / 'logs'
ENV_FILE = PROJECT_ROOT / '.env'
