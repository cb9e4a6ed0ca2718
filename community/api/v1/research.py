"""Research API endpoints."""
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
import logging

from community.services.research_service import ResearchService, UpdatePayload
from community.services.storage_service import StorageService
from community.utils.jwt_helpers import get_current_user_id, get_optional_user


bp = Blueprint('research', __name__)
logger = logging.getLogger(__name__)


def get_research_service() -> ResearchService:
    """Research service bound to the current app's upload settings."""
    config = current_app.config
    return ResearchService(
        storage=StorageService(config['UPLOAD_FOLDER']),
        tenant_id=config['TENANT_ID'],
        max_images=config['MAX_IMAGES_PER_UPDATE'],
        image_extensions=config['ALLOWED_IMAGE_EXTENSIONS'],
        file_extensions=config['ALLOWED_EXTENSIONS']
    )


@bp.route('/', methods=['POST'])
@jwt_required()
def create_research():
    """
    Create a research item.

    Request JSON:
        - title: Research title (required)
        - description: Research description (optional)

    Returns:
        Created research item
    """
    data = request.get_json() or {}
    item = get_research_service().create_item(
        author_id=get_current_user_id(),
        title=data.get('title', ''),
        description=data.get('description', '')
    )
    return jsonify({'research': item.to_dict()}), 201


@bp.route('/<int:research_id>', methods=['GET'])
def get_research(research_id):
    """Research item with its visible updates."""
    user = get_optional_user()
    item = get_research_service().get_item(research_id)
    return jsonify({'research': item.to_dict(viewer_id=user.id if user else None)}), 200


@bp.route('/<int:research_id>/updates', methods=['POST'])
@jwt_required()
def create_update(research_id):
    """
    Create a research update.

    Multipart form:
        - title, description, video_url, file_link
        - is_draft: "true" to save without publishing
        - images, files: uploaded attachments

    Returns:
        Created update
    """
    payload = UpdatePayload.from_request(request.form, request.files)
    update, _ = get_research_service().upsert_update(
        user_id=get_current_user_id(),
        research_id=research_id,
        update_id=None,
        payload=payload
    )
    return jsonify({'research_update': update.to_dict()}), 201


@bp.route('/<int:research_id>/updates/<int:update_id>', methods=['PUT'])
@jwt_required()
def edit_update(research_id, update_id):
    """
    Edit a research update.

    Multipart form as for creation, plus:
        - existing_images, existing_files: JSON lists of attachments to keep

    Returns:
        Updated update
    """
    payload = UpdatePayload.from_request(request.form, request.files)
    update, _ = get_research_service().upsert_update(
        user_id=get_current_user_id(),
        research_id=research_id,
        update_id=update_id,
        payload=payload
    )
    return jsonify({'research_update': update.to_dict()}), 200


@bp.route('/<int:research_id>/updates/<int:update_id>', methods=['DELETE'])
@jwt_required()
def delete_update(research_id, update_id):
    """Soft delete a research update."""
    get_research_service().delete_update(
        user_id=get_current_user_id(),
        research_id=research_id,
        update_id=update_id
    )
    return jsonify({'message': 'Research update deleted', 'update_id': update_id}), 200
