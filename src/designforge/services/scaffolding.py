"""Project Scaffolder
===================

Assembles a complete, buildable project around a generated component.

Template files live under ``templates/scaffold``:
- ``next/`` and ``react/``: layout specific files
- ``shared/``: styling toolchain shared by both layouts
- ``ui/``: the ``cn`` helper and the UI primitives

Files ending in ``.jinja2`` are rendered (project name, component name,
design tokens); every other file is copied verbatim. Identical inputs give
byte-identical file sets.
"""

import logging
import re
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from designforge.constants import (
    BUILD_HINTS,
    DEFAULT_COMPONENT_NAME,
    DEFAULT_PROJECT_PREFIX,
    DESIGN_TOKENS,
    PAIRED_TOKENS,
    SINGLE_TOKENS,
    UI_PRIMITIVES,
    BuildHints,
    Framework,
)
from designforge.paths import SCAFFOLD_DIR

from .service_base import ConfigurationError

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = '.jinja2'
MAX_PROJECT_NAME_LENGTH = 100

_PROJECT_NAME_INVALID = re.compile(r'[^a-z0-9._-]+')
_PROJECT_NAME_DASHES = re.compile(r'-{2,}')
_BASE36_DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'


@dataclass(frozen=True)
class ProjectFile:
    path: str
    content: str


class ProjectFileSet:
    """Ordered (path, content) pairs with unique paths."""

    def __init__(self, files: Optional[List[ProjectFile]] = None):
        self._files: Dict[str, ProjectFile] = {}
        for project_file in files or []:
            self.add(project_file.path, project_file.content)

    def add(self, path: str, content: str) -> None:
        if path in self._files:
            raise ValueError(f"Duplicate project file path: {path}")
        self._files[path] = ProjectFile(path, content)

    def get(self, path: str) -> Optional[str]:
        project_file = self._files.get(path)
        return project_file.content if project_file else None

    @property
    def paths(self) -> List[str]:
        return list(self._files)

    def to_deployment_files(self) -> List[Dict[str, str]]:
        """Shape expected by the deployment API (``file``/``data`` pairs)."""
        return [{'file': f.path, 'data': f.content} for f in self]

    def __iter__(self) -> Iterator[ProjectFile]:
        return iter(self._files.values())

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectFileSet):
            return NotImplemented
        return list(self) == list(other)


@dataclass(frozen=True)
class Layout:
    """Where each piece of a project goes for one framework."""
    files: Tuple[Tuple[str, str], ...]  # (output path, template path)
    stylesheet: str
    lib_dir: str
    ui_dir: str
    entry: Tuple[str, str]
    component_dir: str
    content_globs: Tuple[str, ...]


LAYOUTS = {
    Framework.NEXT: Layout(
        files=(
            ('package.json', 'next/package.json.jinja2'),
            ('tsconfig.json', 'next/tsconfig.json'),
            ('next.config.js', 'next/next.config.js'),
            ('next-env.d.ts', 'next/next-env.d.ts'),
            ('tailwind.config.js', 'shared/tailwind.config.js.jinja2'),
            ('postcss.config.js', 'shared/postcss.config.js'),
            ('pages/_app.tsx', 'next/pages/_app.tsx'),
        ),
        stylesheet='styles/globals.css',
        lib_dir='lib',
        ui_dir='components/ui',
        entry=('pages/index.tsx', 'next/pages/index.tsx.jinja2'),
        component_dir='components',
        content_globs=(
            './pages/**/*.{js,ts,jsx,tsx}',
            './components/**/*.{js,ts,jsx,tsx}',
        ),
    ),
    Framework.REACT: Layout(
        files=(
            ('package.json', 'react/package.json.jinja2'),
            ('tsconfig.json', 'react/tsconfig.json'),
            ('tailwind.config.js', 'shared/tailwind.config.js.jinja2'),
            ('postcss.config.js', 'shared/postcss.config.js'),
            ('public/index.html', 'react/public/index.html.jinja2'),
            ('src/index.tsx', 'react/src/index.tsx'),
        ),
        stylesheet='src/index.css',
        lib_dir='src/lib',
        ui_dir='src/components/ui',
        entry=('src/App.tsx', 'react/src/App.tsx.jinja2'),
        component_dir='src/components',
        content_globs=(
            './src/**/*.{js,ts,jsx,tsx}',
            './public/index.html',
        ),
    ),
}


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 value must be non-negative")
    digits = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
        if value == 0:
            return ''.join(reversed(digits))


def normalize_project_name(name: str) -> str:
    """Coerce ``name`` into the hosting platform's project name rules.

    Lowercase letters, digits, ``.``, ``_`` and ``-`` only, no ``--`` runs,
    at most 100 characters.
    """
    cleaned = _PROJECT_NAME_INVALID.sub('-', name.strip().lower())
    cleaned = _PROJECT_NAME_DASHES.sub('-', cleaned).strip('-._')
    return cleaned[:MAX_PROJECT_NAME_LENGTH].rstrip('-._')


class ProjectScaffolder:
    """Builds project file sets from the static templates.

    Usage:
        scaffolder = ProjectScaffolder()
        files = scaffolder.build(code, 'GeneratedComponent', Framework.NEXT, 'my-preview')
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(SCAFFOLD_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def default_project_name(self, subject: str) -> str:
        """``forge-preview-<first 8 of subject>-<epoch ms in base36>``."""
        stamp = to_base36(int(self._clock() * 1000))
        return normalize_project_name(f"{DEFAULT_PROJECT_PREFIX}-{subject[:8]}-{stamp}")

    def build_hints(self, framework: Framework) -> BuildHints:
        return BUILD_HINTS[Framework(framework)]

    def build(
        self,
        code: str,
        component_name: str = DEFAULT_COMPONENT_NAME,
        framework: Framework = Framework.NEXT,
        project_name: str = DEFAULT_PROJECT_PREFIX,
    ) -> ProjectFileSet:
        framework = Framework(framework)
        layout = LAYOUTS[framework]
        context = self._context(layout, component_name, project_name)

        file_set = ProjectFileSet()
        for output_path, template_path in layout.files:
            file_set.add(output_path, self._load(template_path, context))

        file_set.add(layout.stylesheet, self._load('shared/globals.css.jinja2', context))
        file_set.add(f"{layout.lib_dir}/utils.ts", self._load('ui/lib/utils.ts', context))
        for primitive in UI_PRIMITIVES:
            file_set.add(f"{layout.ui_dir}/{primitive}.tsx", self._load(f'ui/components/{primitive}.tsx', context))

        entry_path, entry_template = layout.entry
        file_set.add(entry_path, self._load(entry_template, context))
        file_set.add(f"{layout.component_dir}/{component_name}.tsx", code)

        logger.info(
            f"Scaffolded {framework} project '{context['project_name']}' "
            f"({len(file_set)} files, component {component_name})"
        )
        return file_set

    def _context(self, layout: Layout, component_name: str, project_name: str) -> Dict[str, object]:
        return {
            'project_name': normalize_project_name(project_name) or DEFAULT_PROJECT_PREFIX,
            'component_name': component_name,
            'tokens': list(DESIGN_TOKENS.items()),
            'single_tokens': SINGLE_TOKENS,
            'paired_tokens': PAIRED_TOKENS,
            'content_globs': layout.content_globs,
        }

    def _load(self, template_path: str, context: Dict[str, object]) -> str:
        try:
            if template_path.endswith(TEMPLATE_SUFFIX):
                return self.jinja_env.get_template(template_path).render(**context)
            return _read_static(template_path)
        except (TemplateNotFound, FileNotFoundError) as e:
            raise ConfigurationError(f"Scaffold template missing: {template_path}") from e


@lru_cache(maxsize=None)
def _read_static(template_path: str) -> str:
    return (SCAFFOLD_DIR / template_path).read_text(encoding='utf-8')
