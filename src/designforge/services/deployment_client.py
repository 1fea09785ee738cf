"""Deployment Client
==================

Submits a scaffolded project to the hosting platform (Vercel's
``/v13/deployments`` API) and returns the live URL.

Every call creates a new deployment; nothing is updated in place.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import aiohttp

from designforge.constants import BuildHints

from .scaffolding import ProjectFileSet
from .service_base import (
    ConfigurationError,
    DeploymentFailed,
    classify_upstream_failure,
    upstream_error_message,
)

logger = logging.getLogger(__name__)


class DeploymentClient(ABC):
    """Narrow interface the pipeline depends on."""

    @abstractmethod
    async def deploy(self, file_set: ProjectFileSet, project_name: str, hints: BuildHints) -> str:
        """Create a deployment and return its public URL."""


class VercelDeploymentClient(DeploymentClient):
    """Minimal client for Vercel deployments."""

    API_URL = 'https://api.vercel.com'
    DEPLOYMENTS_PATH = '/v13/deployments'

    def __init__(
        self,
        token: Optional[str],
        api_url: str = API_URL,
        team_id: Optional[str] = None,
        timeout: float = 60.0,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.token = token
        self.api_url = api_url.rstrip('/')
        self.team_id = team_id
        self.timeout = timeout
        self._session_factory = session_factory

        if not self.token:
            logger.warning("VERCEL_ACCESS_TOKEN not set; deployments will fail")

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.token}',
            'Content-Type': 'application/json',
        }

    def _params(self) -> Dict[str, str]:
        return {'teamId': self.team_id} if self.team_id else {}

    def build_payload(self, file_set: ProjectFileSet, project_name: str, hints: BuildHints) -> Dict[str, Any]:
        return {
            'name': project_name,
            'files': file_set.to_deployment_files(),
            'projectSettings': hints.to_project_settings(),
        }

    async def deploy(self, file_set: ProjectFileSet, project_name: str, hints: BuildHints) -> str:
        if not self.token:
            raise ConfigurationError('Missing deployment token (VERCEL_ACCESS_TOKEN)')

        payload = self.build_payload(file_set, project_name, hints)
        start_time = time.time()
        logger.info(f"Creating deployment '{project_name}' ({len(file_set)} files, {hints.framework})")

        try:
            async with self._session_factory() as session:
                async with session.post(
                    f"{self.api_url}{self.DEPLOYMENTS_PATH}",
                    json=payload,
                    params=self._params(),
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status_code = response.status
                    try:
                        data = await response.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError):
                        text = await response.text()
                        data = {'error': f'Non-JSON response: {text[:200]}'}
        except asyncio.TimeoutError as e:
            logger.warning(f"Deployment timeout after {self.timeout}s")
            raise DeploymentFailed(f'Deployment timed out after {self.timeout}s') from e
        except aiohttp.ClientError as e:
            logger.warning(f"Network error: {e}")
            raise DeploymentFailed(f'Network error: {e}') from e

        if not 200 <= status_code < 300:
            message = upstream_error_message(data)
            logger.warning(f"Vercel API error {status_code}: {message}")
            raise classify_upstream_failure(status_code, message, DeploymentFailed)

        url = data.get('url') if isinstance(data, dict) else None
        if not url:
            raise DeploymentFailed(f'Deployment response missing url: {str(data)[:200]}')
        if not url.startswith(('http://', 'https://')):
            url = f'https://{url}'

        logger.info(f"Deployment '{project_name}' created in {time.time() - start_time:.1f}s: {url}")
        return url
