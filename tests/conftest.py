import sys
from pathlib import Path

# Ensure the application package under src/ is importable when running tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / 'src'
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import base64
import os
import time

import jwt
import pytest

from designforge.factory import create_app
from designforge.services.deployment_client import DeploymentClient
from designforge.services.generation_client import GenerationClient
from designforge.services.service_locator import ServiceLocator

TEST_JWT_SECRET = 'designforge-test-secret-0123456789abcdef'
TEST_ISSUER = 'canva.com'
PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


class FakeGenerationClient(GenerationClient):
    """Records prompts and returns canned output."""

    def __init__(self, text='export default function C(){return null}', chunks=None, error=None):
        self.text = text
        self.chunks = list(chunks or [])
        self.error = error
        self.calls = []
        self.stream_calls = []
        self.closed = False

    async def generate(self, prompt):
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    def open_stream(self, prompt):
        self.stream_calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self._iterate()

    def _iterate(self):
        try:
            for chunk in self.chunks:
                yield chunk
        finally:
            self.closed = True


class FakeDeploymentClient(DeploymentClient):
    """Records deployments and returns a fixed URL."""

    def __init__(self, url='https://forge-preview-abc.vercel.app', error=None):
        self.url = url
        self.error = error
        self.calls = []

    async def deploy(self, file_set, project_name, hints):
        self.calls.append({'file_set': file_set, 'project_name': project_name, 'hints': hints})
        if self.error is not None:
            raise self.error
        return self.url


class FakeAiohttpResponse:
    def __init__(self, status=200, payload=None, text=''):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type=None):
        if self._payload is None:
            raise ValueError('not json')
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeAiohttpSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def fake_session():
    """Build a fake aiohttp session; pass ``session_factory=lambda: session``."""
    def _make(status=200, payload=None, text='', error=None):
        return FakeAiohttpSession(FakeAiohttpResponse(status, payload, text), error=error)
    return _make


@pytest.fixture
def fake_generation():
    return FakeGenerationClient()


@pytest.fixture
def fake_deployment():
    return FakeDeploymentClient()


@pytest.fixture
def app(fake_generation, fake_deployment):
    """Create application for the tests with fake external clients."""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing', overrides={
        'JWT_SECRET': TEST_JWT_SECRET,
        'JWT_ISSUER': TEST_ISSUER,
        'RATE_LIMIT_ENABLED': True,
        'RATE_LIMIT_MAX_REQUESTS': 10,
        'RATE_LIMIT_WINDOW_SECONDS': 60,
    })
    with app.app_context():
        ServiceLocator.register('generation_client', fake_generation)
        ServiceLocator.register('deployment_client', fake_deployment)
    yield app


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def make_token():
    """Sign a token; keyword arguments override or (with None) drop claims."""
    def _make(secret=TEST_JWT_SECRET, **overrides):
        now = int(time.time())
        claims = {
            'sub': 'user-1234567890',
            'aud': 'app-test',
            'iss': TEST_ISSUER,
            'iat': now,
            'exp': now + 3600,
            'brandId': 'brand-1',
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return jwt.encode(claims, secret, algorithm='HS256')
    return _make


@pytest.fixture
def auth_headers(make_token):
    return {'Authorization': f'Bearer {make_token()}'}


def build_png_data_url(decoded_size):
    payload = PNG_SIGNATURE + b'\x00' * max(0, decoded_size - len(PNG_SIGNATURE))
    return 'data:image/png;base64,' + base64.b64encode(payload).decode('ascii')


@pytest.fixture
def png_data_url():
    """A 50 KB PNG data URI."""
    return build_png_data_url(50 * 1024)


@pytest.fixture
def oversized_data_url():
    """Estimated decoded size just above 10 MiB; not a real image, only the length matters."""
    return 'data:image/png;base64,' + 'A' * (int(10 * 1024 * 1024 * 4 / 3) + 8)
