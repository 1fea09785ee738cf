"""
Development server entry point
==============================

    design-forge            # or: python -m designforge.main

Serves the app with Flask's built-in server; use a WSGI server such as
gunicorn (``designforge:create_app()``) in production.
"""

import os

from designforge.factory import create_app
from designforge.utils.logging_config import setup_application_logging


def main():
    setup_application_logging()
    app = create_app(os.environ.get('FLASK_ENV'))
    app.run(
        host=app.config.get('HOST', '0.0.0.0'),
        port=int(app.config.get('PORT', 3001)),
        debug=bool(app.config.get('DEBUG')),
        threaded=True,
    )


if __name__ == '__main__':
    main()
