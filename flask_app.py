"""
Flask application for artist submissions.
Accepts the public submission form (fields + artwork images) and hands it to
the intake pipeline. The admin review dashboard is served separately.
"""

import logging
import os
from typing import List, Optional

from flask import Flask, jsonify, request
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import RequestEntityTooLarge

from intake.config import IntakeSettings, load_settings
from intake.errors import ConfigurationError
from intake.runner import IntakePipeline, build_pipeline
from intake.schema import UploadedFile

# Multi-file field; PHP-style forms post it with brackets
FILE_FIELDS = ("artworkImages", "artworkImages[]")
FORM_OVERHEAD_BYTES = 1024 * 1024
CLIENT_ERROR_CATEGORIES = {"validation_error", "quota_exceeded"}


def to_uploaded_file(storage: FileStorage) -> UploadedFile:
    """Read one FileStorage into memory. Declared size is the larger of header and payload."""
    data = storage.read()
    return UploadedFile(
        filename=storage.filename or "",
        content_type=storage.mimetype or storage.content_type or "",
        size=max(storage.content_length or 0, len(data)),
        data=data,
    )


def read_uploads() -> List[UploadedFile]:
    """Collect artwork images from the current request, skipping empty file inputs."""
    uploads = []
    for field in FILE_FIELDS:
        for storage in request.files.getlist(field):
            if storage and storage.filename:
                uploads.append(to_uploaded_file(storage))
    return uploads


def create_app(settings: Optional[IntakeSettings] = None, pipeline: Optional[IntakePipeline] = None) -> Flask:
    """
    Build the Flask app.

    Args:
        settings: Intake settings; loaded from the environment when omitted
        pipeline: Intake pipeline; built from settings when omitted
    """
    app = Flask(__name__)
    app.logger.setLevel(logging.INFO)

    settings = settings or load_settings()
    pipeline = pipeline or build_pipeline(settings)

    app.config["INTAKE_SETTINGS"] = settings
    app.config["MAX_CONTENT_LENGTH"] = (
        settings.max_file_size * settings.max_files_per_submission + FORM_OVERHEAD_BYTES
    )
    app.extensions["intake_pipeline"] = pipeline

    @app.after_request
    def add_cors_headers(response):
        if request.path == "/submit":
            response.headers["Access-Control-Allow-Origin"] = "*"
            response.headers["Access-Control-Allow-Methods"] = "POST"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(RequestEntityTooLarge)
    def request_too_large(e):
        return jsonify({
            "success": False,
            "message": (
                f"Submission is too large. Maximum {settings.max_files_per_submission} files "
                f"of {settings.max_file_size_mb}MB each"
            ),
        }), 413

    @app.route("/submit", methods=["POST"])
    def submit():
        """Handle one artist submission."""
        uploads = read_uploads()
        result = pipeline.process_submission(request.form.to_dict(), uploads)
        body = result.to_response(debug=settings.debug_mode)

        if result.success:
            app.logger.info(f"✅ Accepted submission {result.submission_id} ({len(uploads)} files)")
            return jsonify(body), 200
        status = 400 if result.category in CLIENT_ERROR_CATEGORIES else 500
        return jsonify(body), status

    @app.route("/api/health")
    def health():
        database_ok = True
        try:
            pipeline.repository.verify_unique_constraint()
        except ConfigurationError as e:
            app.logger.warning(f"⚠️ Health check: {e.message}")
            database_ok = False
        return jsonify({
            "success": database_ok,
            "submissions_root": settings.submissions_root.is_dir(),
            "database": database_ok,
        }), 200 if database_ok else 503

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s'
    )
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=app.config["INTAKE_SETTINGS"].debug_mode)
