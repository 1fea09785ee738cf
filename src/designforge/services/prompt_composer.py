"""Prompt Composer
================

Renders the system and user prompts for code generation and bundles them,
together with the design image, into chat-completion messages.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from designforge.constants import (
    DEFAULT_COMPONENT_NAME,
    DESIGN_TOKENS,
    UI_PRIMITIVES,
)
from designforge.paths import PROMPTS_DIR

logger = logging.getLogger(__name__)

FRAMEWORK_LABEL = 'Next.js 15 with React 18'


@dataclass(frozen=True)
class ComposedPrompt:
    """Everything sent to the generation service for one request."""
    system: str
    text: str
    image_data_url: str

    def to_messages(self) -> List[Dict[str, Any]]:
        """OpenAI-style messages: system turn plus one multimodal user turn."""
        return [
            {'role': 'system', 'content': self.system},
            {
                'role': 'user',
                'content': [
                    {'type': 'text', 'text': self.text},
                    {'type': 'image_url', 'image_url': {'url': self.image_data_url}},
                ],
            },
        ]


class PromptComposer:
    """Loads and renders prompts for code generation."""

    SYSTEM_TEMPLATE = 'system.md.jinja2'
    USER_TEMPLATE = 'user.md.jinja2'

    def __init__(self, component_name: str = DEFAULT_COMPONENT_NAME):
        if not PROMPTS_DIR.exists():
            logger.error(f"Prompts directory not found at {PROMPTS_DIR}")

        self.component_name = component_name
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(PROMPTS_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def _context(self, instructions: Optional[str] = None) -> Dict[str, Any]:
        return {
            'instructions': instructions.strip() if instructions else None,
            'framework_label': FRAMEWORK_LABEL,
            'component_name': self.component_name,
            'tokens': list(DESIGN_TOKENS),
            'primitives': list(UI_PRIMITIVES),
        }

    def system_prompt(self) -> str:
        template = self.jinja_env.get_template(self.SYSTEM_TEMPLATE)
        return template.render(**self._context()).strip()

    def user_prompt(self, instructions: Optional[str] = None) -> str:
        """Base instructions, with caller instructions prepended when given."""
        template = self.jinja_env.get_template(self.USER_TEMPLATE)
        return template.render(**self._context(instructions)).strip()

    def compose(self, image_data_url: str, instructions: Optional[str] = None) -> ComposedPrompt:
        prompt = ComposedPrompt(
            system=self.system_prompt(),
            text=self.user_prompt(instructions),
            image_data_url=image_data_url,
        )
        logger.debug(
            f"Composed prompt: {len(prompt.text)} chars text, "
            f"{len(instructions or '')} chars caller instructions"
        )
        return prompt
