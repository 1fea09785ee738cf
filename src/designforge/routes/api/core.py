"""
Core API routes
===============

Service banner and health check. Both are unauthenticated.
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from designforge import __version__

core_bp = Blueprint('core_api', __name__)


@core_bp.route('/')
def api_overview():
    """Service banner listing the public endpoints."""
    return jsonify({
        'message': 'Design Forge backend is running',
        'status': 'running',
        'version': __version__,
        'endpoints': {
            'generate': '/api/generate',
            'generateStream': '/api/generate/stream',
            'deploy': '/api/deploy',
            'health': '/api/health',
        },
    })


@core_bp.route('/api/health')
def api_health():
    """Liveness plus which upstream credentials are configured (never their values)."""
    config = current_app.config
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': __version__,
        'auth_configured': bool(config.get('JWT_SECRET')),
        'generation_configured': bool(config.get('V0_API_KEY')),
        'deployment_configured': bool(config.get('VERCEL_ACCESS_TOKEN')),
    })
