"""Tests for request payload validation."""

import pytest

from designforge.constants import Framework
from designforge.services.payload_validator import (
    DeploymentRequest,
    GenerationRequest,
    estimate_decoded_size,
    validate_deployment_payload,
    validate_generation_payload,
)
from designforge.services.service_base import InvalidRequest

IMAGE = 'data:image/png;base64,iVBORw0KGgo='


@pytest.mark.unit
class TestGenerationPayload:
    """Test validate_generation_payload."""

    def test_valid_payload(self):
        request = validate_generation_payload({'imageDataURL': IMAGE, 'prompt': 'Use a dark theme'})
        assert request == GenerationRequest(image_data_url=IMAGE, instructions='Use a dark theme')

    @pytest.mark.parametrize('prompt', [None, ''])
    def test_empty_prompt_is_absent(self, prompt):
        assert validate_generation_payload({'imageDataURL': IMAGE, 'prompt': prompt}).instructions is None

    @pytest.mark.parametrize('body', [None, [], 'text', 42])
    def test_non_object_body(self, body):
        with pytest.raises(InvalidRequest, match='Expected JSON object'):
            validate_generation_payload(body)

    @pytest.mark.parametrize('value', [None, '', 123, ['data:image/png;base64,AA']])
    def test_missing_or_non_string_image(self, value):
        with pytest.raises(InvalidRequest, match='Missing or invalid imageDataURL'):
            validate_generation_payload({'imageDataURL': value})

    def test_non_string_prompt(self):
        with pytest.raises(InvalidRequest, match='Invalid prompt'):
            validate_generation_payload({'imageDataURL': IMAGE, 'prompt': {'text': 'x'}})

    @pytest.mark.parametrize('value', ['http://example.com/a.png', 'data:text/plain;base64,AA', 'iVBORw0KGgo='])
    def test_not_an_image_data_url(self, value):
        with pytest.raises(InvalidRequest, match='Must be a data URL starting with "data:image/"'):
            validate_generation_payload({'imageDataURL': value})

    @pytest.mark.parametrize('value', [
        'data:image/png;utf8,abc',
        'data:image/png,raw-bytes;base64,AAAA',
        'data:image/jpeg;base64AAAA',
    ])
    def test_not_base64(self, value):
        with pytest.raises(InvalidRequest, match='Must be base64 encoded'):
            validate_generation_payload({'imageDataURL': value})

    @pytest.mark.parametrize('value', [
        'data:image/svg+xml;base64,AAAA',
        'data:image/svg+xml;utf8,<svg/>',
        'data:image/;base64,AAAA',
        'data:image/PNG;base64,AAAA',
        'data:image/pngx;base64,AAAA',
    ])
    def test_unsupported_image_type(self, value):
        with pytest.raises(InvalidRequest, match='Supported types: png, jpeg, jpg, webp, gif'):
            validate_generation_payload({'imageDataURL': value})

    @pytest.mark.parametrize('value', [
        'data:image/jpeg;base64,AAAA',
        'data:image/jpg;base64,AAAA',
        'data:image/webp;base64,AAAA',
        'data:image/gif;base64,AAAA',
        'data:image/png;charset=binary;name=x.png;base64,AAAA',
    ])
    def test_supported_image_types_accepted(self, value):
        assert validate_generation_payload({'imageDataURL': value}).image_data_url == value

    def test_oversized_image(self, oversized_data_url):
        with pytest.raises(InvalidRequest, match='Image too large. Maximum size is 10MB'):
            validate_generation_payload({'imageDataURL': oversized_data_url})

    def test_image_at_limit_is_accepted(self):
        data_url = 'data:image/png;base64,' + 'A' * (10 * 1024 * 1024 * 4 // 3)
        assert estimate_decoded_size(data_url) <= 10 * 1024 * 1024
        validate_generation_payload({'imageDataURL': data_url})

    def test_estimate_decoded_size(self):
        assert estimate_decoded_size('data:image/png;base64,AAAA') == 3


@pytest.mark.unit
class TestDeploymentPayload:
    """Test validate_deployment_payload."""

    def test_defaults(self):
        request = validate_deployment_payload({'code': 'export default function C(){return null}'})
        assert request == DeploymentRequest(
            code='export default function C(){return null}',
            component_name='GeneratedComponent',
            project_name=None,
            framework=Framework.NEXT,
        )

    def test_all_fields(self):
        request = validate_deployment_payload({
            'code': 'x',
            'componentName': 'HeroBanner',
            'projectName': 'my-preview',
            'framework': 'react',
        })
        assert request.component_name == 'HeroBanner'
        assert request.project_name == 'my-preview'
        assert request.framework is Framework.REACT

    @pytest.mark.parametrize('field_name', ['componentName', 'projectName', 'framework'])
    def test_empty_optional_fields_use_defaults(self, field_name):
        request = validate_deployment_payload({'code': 'x', field_name: ''})
        assert request.component_name == 'GeneratedComponent'
        assert request.project_name is None
        assert request.framework is Framework.NEXT

    @pytest.mark.parametrize('code', [None, '', '   \n', 7])
    def test_missing_code(self, code):
        with pytest.raises(InvalidRequest, match='Missing or invalid code'):
            validate_deployment_payload({'code': code})

    def test_code_too_large(self):
        with pytest.raises(InvalidRequest, match='Code too large. Maximum size is 2MB'):
            validate_deployment_payload({'code': 'a' * (2 * 1024 * 1024 + 1)})

    def test_code_size_counts_utf8_bytes(self):
        # Three bytes per character once encoded
        with pytest.raises(InvalidRequest, match='Code too large'):
            validate_deployment_payload({'code': '€' * 700_000})

    @pytest.mark.parametrize('framework', ['vue', 'NEXT', 'angular', 1])
    def test_unknown_framework(self, framework):
        with pytest.raises(InvalidRequest) as excinfo:
            validate_deployment_payload({'code': 'x', 'framework': framework})
        assert excinfo.value.message == 'Invalid framework. Must be "next" or "react".'

    @pytest.mark.parametrize('name', [
        '../evil', 'my-component', '1Component', 'A' * 65, 'Hero Banner',
        # Lowercase names collide with JS keywords or render as DOM tags
        'default', 'class', 'card', 'heroBanner', '_Private',
    ])
    def test_invalid_component_name(self, name):
        with pytest.raises(InvalidRequest, match='Invalid componentName'):
            validate_deployment_payload({'code': 'x', 'componentName': name})

    @pytest.mark.parametrize('name', ['Card', 'Card1', 'My_Component', 'X'])
    def test_pascal_case_component_name_accepted(self, name):
        assert validate_deployment_payload({'code': 'x', 'componentName': name}).component_name == name

    @pytest.mark.parametrize('name', ['App', 'React', 'PreviewPage', 'Head'])
    def test_reserved_component_name(self, name):
        with pytest.raises(InvalidRequest, match='is reserved'):
            validate_deployment_payload({'code': 'x', 'componentName': name})

    def test_non_string_project_name(self):
        with pytest.raises(InvalidRequest, match='Invalid projectName'):
            validate_deployment_payload({'code': 'x', 'projectName': 12})

    def test_non_object_body(self):
        with pytest.raises(InvalidRequest, match='Expected JSON object'):
            validate_deployment_payload(['code'])
