"""Web routes outside the JSON API."""
from flask import Blueprint, current_app, send_from_directory

bp = Blueprint('web', __name__)


@bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    """Serve a stored research attachment."""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return {'status': 'healthy', 'version': current_app.config['VERSION']}, 200
