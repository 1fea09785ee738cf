"""Design-to-code pipeline
========================

Orchestrates the request flow once a caller is authenticated, admitted and
validated:

    generate:  compose prompt -> generation client -> sanitize
    stream:    compose prompt -> generation client (raw chunks)
    deploy:    scaffold project -> deployment client
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, Optional

from designforge.utils.async_utils import run_async_safely

from .deployment_client import DeploymentClient
from .generation_client import GenerationClient
from .identity import Identity
from .output_sanitizer import sanitize_output
from .payload_validator import DeploymentRequest, GenerationRequest
from .prompt_composer import PromptComposer
from .scaffolding import ProjectScaffolder, normalize_project_name
from .service_base import GenerationFailed

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Result of a single-shot generation."""
    code: str
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class DeploymentResult:
    """Result of a deployment submission."""
    deployment_url: str
    project_name: str
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            'success': self.success,
            'deploymentUrl': self.deployment_url,
            'projectName': self.project_name,
        }
        if self.error is not None:
            payload['error'] = self.error
        return payload


class DesignToCodePipeline:
    """Glue between the composer, the external clients and the scaffolder."""

    def __init__(
        self,
        generation_client: GenerationClient,
        deployment_client: DeploymentClient,
        composer: Optional[PromptComposer] = None,
        scaffolder: Optional[ProjectScaffolder] = None,
    ):
        self.generation_client = generation_client
        self.deployment_client = deployment_client
        self.composer = composer or PromptComposer()
        self.scaffolder = scaffolder or ProjectScaffolder()

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        prompt = self.composer.compose(request.image_data_url, request.instructions)
        raw = await self.generation_client.generate(prompt)
        code = sanitize_output(raw)
        if not code:
            raise GenerationFailed(f'Generation returned no code ({len(raw or "")} raw chars)')
        logger.info(f"Generated {len(code)} chars of code ({len(raw)} raw)")
        return GenerationResult(code=code)

    def generate_sync(self, request: GenerationRequest) -> GenerationResult:
        return run_async_safely(self.generate(request))

    def open_stream(self, request: GenerationRequest) -> Iterator[str]:
        """Open the upstream stream; chunks are forwarded unsanitized."""
        prompt = self.composer.compose(request.image_data_url, request.instructions)
        return self.generation_client.open_stream(prompt)

    async def deploy(self, request: DeploymentRequest, identity: Identity) -> DeploymentResult:
        if request.project_name:
            project_name = normalize_project_name(request.project_name) or \
                self.scaffolder.default_project_name(identity.subject)
        else:
            project_name = self.scaffolder.default_project_name(identity.subject)

        file_set = self.scaffolder.build(
            request.code,
            component_name=request.component_name,
            framework=request.framework,
            project_name=project_name,
        )
        hints = self.scaffolder.build_hints(request.framework)
        url = await self.deployment_client.deploy(file_set, project_name, hints)
        return DeploymentResult(deployment_url=url, project_name=project_name)

    def deploy_sync(self, request: DeploymentRequest, identity: Identity) -> DeploymentResult:
        return run_async_safely(self.deploy(request, identity))
