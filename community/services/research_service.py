"""Research items and their updates."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from community.models import ResearchItem, ResearchUpdate
from community.models.base import db
from community.services.storage_service import StorageService
from community.utils.exceptions import AuthorizationError, ResourceNotFoundError, StorageError, ValidationError
from community.utils.validators import sanitize_input, slugify, validate_link

logger = logging.getLogger(__name__)

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


@dataclass
class UpdatePayload:
    """Fields submitted for creating or editing an update."""

    title: str = ''
    description: str = ''
    video_url: str = ''
    file_link: str = ''
    is_draft: bool = False
    existing_images: List[Dict[str, Any]] = field(default_factory=list)
    existing_files: List[Dict[str, Any]] = field(default_factory=list)
    images: List[FileStorage] = field(default_factory=list)
    files: List[FileStorage] = field(default_factory=list)

    @classmethod
    def from_request(cls, form, files) -> 'UpdatePayload':
        """Build a payload from a multipart form and its uploaded files."""
        return cls(
            title=sanitize_input(form.get('title', ''), 200),
            description=sanitize_input(form.get('description', '')),
            video_url=sanitize_input(form.get('video_url', ''), 2000),
            file_link=sanitize_input(form.get('file_link', ''), 2000),
            is_draft=(form.get('is_draft') or '').lower() in TRUE_VALUES,
            existing_images=_parse_media_list(form.get('existing_images')),
            existing_files=_parse_media_list(form.get('existing_files')),
            images=files.getlist('images'),
            files=files.getlist('files'),
        )


def _parse_media_list(raw: Optional[str]) -> List[Dict[str, Any]]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        raise ValidationError('Attachment list is not valid JSON')
    if not isinstance(value, list):
        raise ValidationError('Attachment list must be a list')
    return [item for item in value if isinstance(item, dict)]


def _keep_existing(current: List[Dict[str, Any]], requested: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attachments already on the update that the client asked to keep, in stored order."""
    keep_ids = {item.get('id') for item in requested}
    return [item for item in current or [] if item.get('id') in keep_ids]


class ResearchService:
    """Create research items and manage their updates."""

    def __init__(
        self,
        storage: StorageService,
        tenant_id: str,
        max_images: int = 10,
        image_extensions: Optional[Set[str]] = None,
        file_extensions: Optional[Set[str]] = None
    ):
        self.storage = storage
        self.tenant_id = tenant_id
        self.max_images = max_images
        self.image_extensions = image_extensions
        self.file_extensions = file_extensions

    def create_item(self, author_id: int, title: str, description: str = '') -> ResearchItem:
        """Create a research item with a slug that is unique across items."""
        title = sanitize_input(title, 200)
        if not title:
            raise ValidationError('Title is required')

        base = slugify(title)
        slug = base
        suffix = 1
        while ResearchItem.query.filter_by(slug=slug).first():
            suffix += 1
            slug = f"{base}-{suffix}"

        item = ResearchItem(
            author_id=author_id,
            title=title,
            slug=slug,
            description=sanitize_input(description),
            tenant_id=self.tenant_id
        )
        item.save()
        logger.info(f"Research item {item.id} created as {slug}")
        return item

    def get_item(self, research_id: int) -> ResearchItem:
        item = ResearchItem.get_by_id(research_id)
        if not item or item.deleted:
            raise ResourceNotFoundError('Research not found')
        return item

    def _get_owned_item(self, user_id: int, research_id: int) -> ResearchItem:
        item = self.get_item(research_id)
        if item.author_id != user_id:
            raise AuthorizationError('Only the author can change this research')
        return item

    def _get_update(self, item: ResearchItem, update_id: int) -> ResearchUpdate:
        update = ResearchUpdate.get_by_id(update_id)
        if not update or update.research_id != item.id or update.deleted:
            raise ResourceNotFoundError('Research update not found')
        return update

    def validate(self, payload: UpdatePayload) -> None:
        """Raise ``ValidationError`` for the first invalid field."""
        if not payload.title:
            raise ValidationError('Title is required')
        if not payload.is_draft and not payload.description:
            raise ValidationError('Description is required')
        if not validate_link(payload.video_url):
            raise ValidationError('Video URL must be a valid http(s) link')
        if not validate_link(payload.file_link):
            raise ValidationError('File link must be a valid http(s) link')

    def upsert_update(
        self,
        user_id: int,
        research_id: int,
        update_id: Optional[int],
        payload: UpdatePayload
    ) -> Tuple[ResearchUpdate, bool]:
        """
        Create an update, or edit one when ``update_id`` is given.

        Args:
            user_id: Authenticated user, who must author the research
            research_id: Parent research item
            update_id: Existing update to edit, ``None`` to create
            payload: Submitted fields and uploads

        Returns:
            Tuple of (update, created)
        """
        item = self._get_owned_item(user_id, research_id)
        self.validate(payload)

        if update_id is None:
            update = ResearchUpdate(research_id=item.id, images=[], files=[])
            created = True
        else:
            update = self._get_update(item, update_id)
            created = False

        new_image_count = len([u for u in payload.images if u and u.filename])
        images = _keep_existing(update.images, payload.existing_images)
        if len(images) + new_image_count > self.max_images:
            raise ValidationError(f"An update can have at most {self.max_images} images")

        files = _keep_existing(update.files, payload.existing_files)

        self.storage.check_all(payload.images, self.image_extensions)
        self.storage.check_all(payload.files, self.file_extensions)

        folder = f"research/{item.id}"
        new_images = self.storage.save_all(payload.images, folder, self.image_extensions)
        try:
            new_files = self.storage.save_all(payload.files, folder, self.file_extensions)
        except StorageError:
            self.storage.discard(new_images)
            raise

        update.title = payload.title
        update.description = payload.description
        update.video_url = payload.video_url or None
        update.file_link = payload.file_link or None
        update.is_draft = payload.is_draft
        update.images = images + new_images
        update.files = files + new_files
        try:
            update.save()
        except SQLAlchemyError:
            db.session.rollback()
            self.storage.discard(new_images + new_files)
            raise

        state = 'draft' if update.is_draft else 'published'
        logger.info(f"Research update {update.id} {'created' if created else 'saved'} ({state})")
        return update, created

    def delete_update(self, user_id: int, research_id: int, update_id: int) -> ResearchUpdate:
        """Soft delete an update; stored attachments are left in place."""
        item = self._get_owned_item(user_id, research_id)
        update = self._get_update(item, update_id)
        update.deleted = True
        db.session.commit()
        logger.info(f"Research update {update.id} deleted")
        return update
