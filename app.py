#!/usr/bin/env python3
"""
Web Application for the Creative Portrait Studio
Upload a photo, describe the face with Gemini, then generate a portrait with Imagen.
A second tab sends prompts straight to Imagen.
"""

import os

from flask import Flask, render_template, jsonify
from flask_cors import CORS

from portrait_studio import studio_bp, create_error_response
from portrait_studio.config import load_config, load_env_file
from portrait_studio.errors import SizeLimitExceeded
from portrait_studio.store import SessionStore

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Room for multipart framing around the largest accepted image
UPLOAD_OVERHEAD_BYTES = 1024 * 1024


def create_app(config=None):
    """
    Build the Flask application

    Args:
        config: StudioConfig to use; read from the environment when None

    Returns:
        Flask: Configured application
    """
    if config is None:
        load_env_file()
        config = load_config()

    app = Flask(__name__, template_folder=os.path.join(BASE_DIR, 'templates'))
    app.config['SECRET_KEY'] = config.secret_key
    app.config['MAX_CONTENT_LENGTH'] = config.max_upload_bytes + UPLOAD_OVERHEAD_BYTES
    app.config['STUDIO_CONFIG'] = config
    app.extensions['studio_store'] = SessionStore(config.max_sessions, config.session_idle_seconds)

    # Configure CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type"],
            "supports_credentials": True
        }
    })

    # Register API blueprint
    app.register_blueprint(studio_bp)

    @app.route('/')
    def index():
        return render_template('index.html', max_upload_mb=config.max_upload_bytes // (1024 * 1024))

    @app.errorhandler(413)
    def request_too_large(e):
        return jsonify(create_error_response(
            SizeLimitExceeded.error_code, SizeLimitExceeded.for_limit(config.max_upload_bytes).message)), 413

    return app


if __name__ == '__main__':
    create_app().run(debug=True, host='0.0.0.0', port=int(os.getenv('PORT', '5000')))
