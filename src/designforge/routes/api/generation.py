"""Generation API
=================

Endpoints:
- POST /api/generate         - design image to component code (JSON)
- POST /api/generate/stream  - same request, raw code streamed as text/plain

Both require a bearer token and count against the caller's rate limit.
Validation runs before the generation service is contacted.
"""

import logging

from flask import Blueprint, Response, g, jsonify, request, stream_with_context

from designforge.decorators import log_execution, rate_limited, require_identity
from designforge.services.payload_validator import validate_generation_payload
from designforge.services.service_base import ServiceError
from designforge.services.service_locator import ServiceLocator

logger = logging.getLogger(__name__)

gen_bp = Blueprint('generation', __name__, url_prefix='/api/generate')


@gen_bp.route('', methods=['POST'])
@require_identity
@rate_limited
@log_execution()
def generate():
    """Generate component code from a design image.

    POST /api/generate
    {
        "imageDataURL": "data:image/png;base64,...",
        "prompt": "optional extra instructions"
    }

    Returns:
    - success: true
    - code: sanitized component source
    - userId: subject of the bearer token
    """
    gen_request = validate_generation_payload(request.get_json(silent=True))
    logger.info(
        f"Generation request from {g.identity.subject} "
        f"(prompt length {len(gen_request.instructions or '')})"
    )

    result = ServiceLocator.get_pipeline().generate_sync(gen_request)

    payload = result.to_dict()
    payload['userId'] = g.identity.subject
    return jsonify(payload), 200


@gen_bp.route('/stream', methods=['POST'])
@require_identity
@rate_limited
def generate_stream():
    """Stream raw component code as it is generated.

    Upstream failures detected before the first chunk produce the usual JSON
    error response. Once streaming has started the status line is sent, so a
    later failure just ends the body early.
    """
    gen_request = validate_generation_payload(request.get_json(silent=True))
    subject = g.identity.subject
    logger.info(f"Streaming generation request from {subject}")

    chunks = ServiceLocator.get_pipeline().open_stream(gen_request)

    def relay():
        sent = 0
        try:
            for chunk in chunks:
                sent += len(chunk)
                yield chunk
        except ServiceError as e:
            logger.error(f"Stream for {subject} aborted after {sent} chars: {e}")
        finally:
            logger.info(f"Stream for {subject} finished ({sent} chars)")

    response = Response(
        stream_with_context(relay()),
        mimetype='text/plain',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
            'X-User-Id': subject,
        },
    )
    # Runs on client disconnect too, even if no chunk was ever pulled
    close = getattr(chunks, 'close', None)
    if close is not None:
        response.call_on_close(close)
    return response
