"""Directory Data Service Package.

To use the Flask app:
    from dataservice.flask_app import create_app

To use the repository without HTTP:
    from dataservice.core.repository import ResourceRepository
"""
# Note: We don't import flask_app by default to avoid Flask dependency
# for scripts that only use dataservice.core
