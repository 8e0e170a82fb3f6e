"""Error handlers for the application.

Every response of this service is JSON; errors are rendered as
``{"error": <kind>, "message": <detail>}``.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from dataservice.core.exceptions import DataServiceError


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(DataServiceError)
    def data_service_error(error):
        """Render core errors with the status their kind carries."""
        if error.status >= 500:
            app.logger.error(f"Directory error: {error}", exc_info=True)
        return jsonify(error.to_dict()), error.status

    @app.errorhandler(HTTPException)
    def http_error(error):
        """Render routing/method errors (404, 405, 400 from Werkzeug) as JSON."""
        return jsonify({"error": error.name, "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # ALWAYS log the error - logs are secure, responses are not
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
