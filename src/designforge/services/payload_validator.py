"""Payload Validator
==================

Structural and semantic checks on request bodies. Runs before any external
call so malformed requests fail cheaply; every violation raises
``InvalidRequest`` with a message naming the offending field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from designforge.constants import (
    DEFAULT_COMPONENT_NAME,
    MAX_CODE_BYTES,
    MAX_COMPONENT_NAME_LENGTH,
    MAX_IMAGE_BYTES,
    MIB,
    Framework,
)

from .service_base import InvalidRequest

IMAGE_PREFIX = 'data:image/'
BASE64_MARKER = 'base64,'
IMAGE_SUBTYPES = ('png', 'jpeg', 'jpg', 'webp', 'gif')

IMAGE_SUBTYPE_RE = re.compile(r'^data:image/([^;,]*)')
# data:image/<subtype>[;params];base64,<payload>
IMAGE_DATA_URL_RE = re.compile(r'^data:image/(?:png|jpeg|jpg|webp|gif)(?:;[^;,]+)*;base64,')

# Becomes both a file name and a JSX binding in the scaffolded project
COMPONENT_NAME_RE = re.compile(r'^[A-Z][A-Za-z0-9_]*$')

# Bindings the scaffolded entry files already declare
RESERVED_COMPONENT_NAMES = frozenset({
    'App', 'AppProps', 'Head', 'NextPage', 'PreviewApp', 'PreviewPage', 'React', 'ReactDOM',
})


@dataclass(frozen=True)
class GenerationRequest:
    image_data_url: str
    instructions: Optional[str] = None


@dataclass(frozen=True)
class DeploymentRequest:
    code: str
    component_name: str = DEFAULT_COMPONENT_NAME
    project_name: Optional[str] = None
    framework: Framework = Framework.NEXT


def estimate_decoded_size(image_data_url: str) -> float:
    """Approximate byte size of the base64 payload once decoded."""
    data = image_data_url.split(BASE64_MARKER, 1)[1]
    return len(data) * 3 / 4


def _require_object(body: Any) -> dict:
    if not isinstance(body, dict):
        raise InvalidRequest('Invalid request body. Expected JSON object.')
    return body


def _optional_string(body: dict, field_name: str) -> Optional[str]:
    value = body.get(field_name)
    # Empty/null optional fields fall back to their defaults
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise InvalidRequest(f'Invalid {field_name}. Must be a string.')
    return value


def validate_image_data_url(image_data_url: str) -> None:
    if not image_data_url.startswith(IMAGE_PREFIX):
        raise InvalidRequest('Invalid image format. Must be a data URL starting with "data:image/"')
    subtype = IMAGE_SUBTYPE_RE.match(image_data_url).group(1)
    if subtype not in IMAGE_SUBTYPES:
        raise InvalidRequest(f'Invalid image format. Supported types: {", ".join(IMAGE_SUBTYPES)}')
    if not IMAGE_DATA_URL_RE.match(image_data_url):
        raise InvalidRequest('Invalid image format. Must be base64 encoded')
    if estimate_decoded_size(image_data_url) > MAX_IMAGE_BYTES:
        raise InvalidRequest(f'Image too large. Maximum size is {MAX_IMAGE_BYTES // MIB}MB')


def validate_generation_payload(body: Any) -> GenerationRequest:
    body = _require_object(body)

    image_data_url = body.get('imageDataURL')
    if not image_data_url or not isinstance(image_data_url, str):
        raise InvalidRequest('Missing or invalid imageDataURL. Must be a base64 data URL string.')

    instructions = _optional_string(body, 'prompt')
    validate_image_data_url(image_data_url)

    return GenerationRequest(image_data_url=image_data_url, instructions=instructions)


def validate_deployment_payload(body: Any) -> DeploymentRequest:
    body = _require_object(body)

    code = body.get('code')
    if not code or not isinstance(code, str) or not code.strip():
        raise InvalidRequest('Missing or invalid code. Must be a string.')
    if len(code.encode('utf-8')) > MAX_CODE_BYTES:
        raise InvalidRequest(f'Code too large. Maximum size is {MAX_CODE_BYTES // MIB}MB')

    component_name = _optional_string(body, 'componentName')
    if component_name is not None:
        if len(component_name) > MAX_COMPONENT_NAME_LENGTH or not COMPONENT_NAME_RE.match(component_name):
            raise InvalidRequest(
                'Invalid componentName. Must be a PascalCase identifier '
                '(uppercase first letter, then letters, digits, underscores; '
                f'at most {MAX_COMPONENT_NAME_LENGTH} characters).'
            )
        if component_name in RESERVED_COMPONENT_NAMES:
            raise InvalidRequest(f'Invalid componentName. "{component_name}" is reserved.')

    project_name = _optional_string(body, 'projectName')

    framework_value = body.get('framework')
    if framework_value is None or framework_value == '':
        framework = Framework.NEXT
    elif framework_value in Framework.values():
        framework = Framework(framework_value)
    else:
        raise InvalidRequest('Invalid framework. Must be "next" or "react".')

    return DeploymentRequest(
        code=code,
        component_name=component_name or DEFAULT_COMPONENT_NAME,
        project_name=project_name,
        framework=framework,
    )
