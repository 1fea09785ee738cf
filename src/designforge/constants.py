"""
Constants and Enums for Design Forge
====================================

Centralized enums and the shared limits used across validation, scaffolding
and deployment.
"""

from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum


# ===========================
# ENUMS
# ===========================

class BaseEnum(str, Enum):
    """Base enum class with string values for consistent behavior."""

    def __str__(self):
        return self.value


class Framework(BaseEnum):
    """Project layouts the scaffolder can produce."""
    NEXT = "next"
    REACT = "react"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


# ===========================
# LIMITS
# ===========================

MIB = 1024 * 1024

# Estimated decoded size of the uploaded design image
MAX_IMAGE_BYTES = 10 * MIB

# UTF-8 size of the code submitted for deployment
MAX_CODE_BYTES = 2 * MIB

# Whole request body; must stay above MAX_IMAGE_BYTES once base64 overhead is added
MAX_CONTENT_LENGTH = 15 * MIB

MAX_COMPONENT_NAME_LENGTH = 64

DEFAULT_COMPONENT_NAME = "GeneratedComponent"
DEFAULT_PROJECT_PREFIX = "forge-preview"


# ===========================
# BUILD HINTS
# ===========================

@dataclass(frozen=True)
class BuildHints:
    """Build-system settings sent along with a deployment."""
    framework: str
    dev_command: str
    build_command: str
    output_directory: str

    def to_project_settings(self):
        return {
            'framework': self.framework,
            'devCommand': self.dev_command,
            'buildCommand': self.build_command,
            'outputDirectory': self.output_directory,
        }


BUILD_HINTS = {
    Framework.NEXT: BuildHints(
        framework='nextjs',
        dev_command='next dev',
        build_command='next build',
        output_directory='.next',
    ),
    Framework.REACT: BuildHints(
        framework='create-react-app',
        dev_command='react-scripts start',
        build_command='react-scripts build',
        output_directory='build',
    ),
}


# ===========================
# DESIGN TOKENS
# ===========================

# name -> (light, dark) HSL triples consumed by hsl(var(--name))
DESIGN_TOKENS = OrderedDict([
    ('background', ('0 0% 100%', '222.2 84% 4.9%')),
    ('foreground', ('222.2 84% 4.9%', '210 40% 98%')),
    ('card', ('0 0% 100%', '222.2 84% 4.9%')),
    ('card-foreground', ('222.2 84% 4.9%', '210 40% 98%')),
    ('primary', ('222.2 47.4% 11.2%', '210 40% 98%')),
    ('primary-foreground', ('210 40% 98%', '222.2 47.4% 11.2%')),
    ('secondary', ('210 40% 96.1%', '217.2 32.6% 17.5%')),
    ('secondary-foreground', ('222.2 47.4% 11.2%', '210 40% 98%')),
    ('muted', ('210 40% 96.1%', '217.2 32.6% 17.5%')),
    ('muted-foreground', ('215.4 16.3% 46.9%', '215 20.2% 65.1%')),
    ('accent', ('210 40% 96.1%', '217.2 32.6% 17.5%')),
    ('accent-foreground', ('222.2 47.4% 11.2%', '210 40% 98%')),
    ('destructive', ('0 84.2% 60.2%', '0 62.8% 30.6%')),
    ('destructive-foreground', ('210 40% 98%', '210 40% 98%')),
    ('border', ('214.3 31.8% 91.4%', '217.2 32.6% 17.5%')),
    ('input', ('214.3 31.8% 91.4%', '217.2 32.6% 17.5%')),
    ('ring', ('222.2 84% 4.9%', '212.7 26.8% 83.9%')),
])

# Tokens that come as a DEFAULT/foreground pair in the tailwind theme
PAIRED_TOKENS = ('primary', 'secondary', 'destructive', 'muted', 'accent', 'card')

# Tokens exposed as a single tailwind colour
SINGLE_TOKENS = ('background', 'foreground', 'border', 'input', 'ring')

UI_PRIMITIVES = ('button', 'card', 'input', 'label', 'badge', 'progress', 'slider')
