"""
Home PT Reports Application Factory
"""
import os
from datetime import datetime, timezone

from flask import Flask, jsonify

from config import config

# Version info
APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
BUILD_TIME = os.environ.get("BUILD_TIME", "")
GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register blueprints
    from homept.api import api_bp

    app.register_blueprint(api_bp)

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        ready = bool((app.config.get("OPENAI_API_KEY") or "").strip())
        return jsonify({
            "status": "ok" if ready else "degraded",
            "version": APP_VERSION,
            "openai": "ok" if ready else "OPENAI_API_KEY is missing",
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": APP_VERSION,
            "build_time": BUILD_TIME,
            "git_commit": GIT_COMMIT,
            "features": {
                "single_report": True,
                "batch_reports": True,
                "pdf_export": True,
                "docx_export": True,
            }
        })

    app.logger.info('Reports dir %s, batch dir %s', app.config["REPORTS_DIR"], app.config["BATCH_REPORTS_DIR"])
    return app
