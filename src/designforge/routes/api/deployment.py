"""Deployment API
=================

POST /api/deploy
{
    "code": "export default function GeneratedComponent() { ... }",
    "componentName": "GeneratedComponent",   (optional)
    "projectName": "my-preview",             (optional)
    "framework": "next" | "react"            (optional, default next)
}

Scaffolds a complete project around the code and submits it to the hosting
platform. Every call creates a new deployment.
"""

import logging

from flask import Blueprint, g, jsonify, request

from designforge.decorators import log_execution, rate_limited, require_identity
from designforge.services.payload_validator import validate_deployment_payload
from designforge.services.service_locator import ServiceLocator

logger = logging.getLogger(__name__)

deploy_bp = Blueprint('deployment', __name__, url_prefix='/api/deploy')


@deploy_bp.route('', methods=['POST'])
@require_identity
@rate_limited
@log_execution()
def deploy():
    deploy_request = validate_deployment_payload(request.get_json(silent=True))
    logger.info(
        f"Deployment request from {g.identity.subject} "
        f"({deploy_request.framework}, component {deploy_request.component_name})"
    )

    result = ServiceLocator.get_pipeline().deploy_sync(deploy_request, g.identity)

    payload = result.to_dict()
    payload['userId'] = g.identity.subject
    return jsonify(payload), 200
