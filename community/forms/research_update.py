"""Controller for the research update create/edit form."""
from __future__ import annotations

import copy
import enum
import logging
import threading
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

from community.forms import labels
from community.services.research_client import ResearchClient
from community.utils.validators import validate_link

logger = logging.getLogger(__name__)

MAX_IMAGE_INPUTS = 10
NAVIGATION_DELAY = 0.1  # seconds, lets the celebration effect start before leaving


class FormState(enum.Enum):
    """Lifecycle of the form."""
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


@dataclass
class ResearchUpdateFormData:
    """Field values of the form.

    ``images`` and ``files`` hold new uploads as ``(filename, fileobj)``
    tuples, with ``None`` for empty input slots.
    """

    title: str = ''
    description: str = ''
    existing_images: List[Dict[str, Any]] = field(default_factory=list)
    existing_files: List[Dict[str, Any]] = field(default_factory=list)
    file_link: str = ''
    video_url: str = ''
    files: List[Any] = field(default_factory=list)
    images: List[Any] = field(default_factory=list)


FIELD_NAMES = {f.name for f in fields(ResearchUpdateFormData)}


def image_inputs_available(images: Optional[List[Any]]) -> int:
    """One more upload slot than filled images, capped at ``MAX_IMAGE_INPUTS``."""
    filled = len([image for image in images or [] if image])
    return min(filled + 1, MAX_IMAGE_INPUTS)


def sidebar_updates(updates: List[Dict[str, Any]], is_creating: bool, title: str) -> List[Dict[str, Any]]:
    """
    Sibling updates for the editor sidebar.

    Args:
        updates: Updates of the research item
        is_creating: Whether the form creates a new update
        title: Current title in the form

    Returns:
        Non-deleted updates, followed by a draft placeholder for the update
        being created
    """
    entries = [
        {
            'title': u.get('title'),
            'is_draft': u.get('is_draft', False),
            'slug': u.get('id'),
            'id': u.get('id'),
        }
        for u in updates
        if not u.get('deleted')
    ]
    if is_creating:
        entries.append({'title': title, 'is_draft': True, 'slug': None})
    return entries


def validate_form(values: ResearchUpdateFormData) -> Dict[str, str]:
    """Field-level errors keyed by field name."""
    errors = {}
    if not (values.title or '').strip():
        errors['title'] = 'Required'
    elif len(values.title) > 200:
        errors['title'] = 'Must be 200 characters or fewer'
    if not (values.description or '').strip():
        errors['description'] = 'Required'
    if not validate_link(values.video_url):
        errors['video_url'] = 'Please provide a valid video URL'
    if not validate_link(values.file_link):
        errors['file_link'] = 'Please provide a valid link'
    if len([image for image in values.images if image]) + len(values.existing_images) > MAX_IMAGE_INPUTS:
        errors['images'] = f'No more than {MAX_IMAGE_INPUTS} images'
    return errors


def error_set(errors: Dict[str, str], field_labels: Dict[str, str]) -> List[str]:
    """Turn field errors into messages prefixed with the field's label."""
    return [
        f"{field_labels.get(name, name)}: {message}"
        for name, message in errors.items()
    ]


def _start_timer(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class ResearchUpdateForm:
    """
    Create or edit one update of a research item.

    The controller owns the form state and delegates everything else:
    ``service`` performs the remote upsert/delete (``for_api`` wires a
    ``ResearchClient``), ``navigate(url, full_reload=False)`` changes page,
    ``celebrate()`` plays the publish effect and ``schedule(delay, callback)``
    defers the post-save redirect.
    """

    def __init__(
        self,
        research: Dict[str, Any],
        service,
        navigate: Callable[..., None],
        research_update: Optional[Dict[str, Any]] = None,
        files: Optional[List[Dict[str, Any]]] = None,
        file_link: Optional[str] = None,
        celebrate: Optional[Callable[[], None]] = None,
        schedule: Optional[Callable[[float, Callable[[], None]], None]] = None
    ):
        self.research = research
        self.research_update = research_update
        self.service = service
        self.navigate = navigate
        self.celebrate = celebrate or (lambda: None)
        self.schedule = schedule or _start_timer

        self.state = FormState.IDLE
        self.save_error_message: Optional[str] = None
        self.errors: Dict[str, str] = {}
        self.show_delete_modal = False
        self.intentional_navigation = False

        if research_update:
            self.initial_values = ResearchUpdateFormData(
                title=research_update.get('title') or '',
                description=research_update.get('description') or '',
                existing_images=list(research_update.get('images') or []),
                existing_files=list(files if files is not None else research_update.get('files') or []),
                file_link=file_link if file_link is not None else research_update.get('file_link') or '',
                video_url=research_update.get('video_url') or '',
            )
        else:
            self.initial_values = ResearchUpdateFormData()
        self.values = copy.deepcopy(self.initial_values)

    @classmethod
    def for_api(
        cls,
        research: Dict[str, Any],
        base_url: str,
        access_token: str,
        navigate: Callable[..., None],
        **kwargs
    ) -> 'ResearchUpdateForm':
        """Form that saves through the research HTTP API at ``base_url``."""
        service = ResearchClient(base_url, access_token)
        return cls(research=research, service=service, navigate=navigate, **kwargs)

    @property
    def update_id(self) -> Optional[int]:
        return self.research_update.get('id') if self.research_update else None

    @property
    def is_edit(self) -> bool:
        return self.research_update is not None

    @property
    def heading(self) -> str:
        return labels.headings['edit'] if self.is_edit else labels.headings['create']

    @property
    def is_saving(self) -> bool:
        return self.state is FormState.SUBMITTING

    @property
    def dirty(self) -> bool:
        return self.values != self.initial_values

    @property
    def has_unsaved_changes(self) -> bool:
        """Whether leaving the page should warn about losing changes."""
        return self.dirty and self.state is not FormState.SUBMITTED and not self.intentional_navigation

    @property
    def has_validation_errors(self) -> bool:
        return bool(validate_form(self.values))

    @property
    def client_errors(self) -> List[str]:
        return error_set(self.errors, labels.update)

    @property
    def image_inputs_available(self) -> int:
        return image_inputs_available(self.values.images)

    @property
    def sidebar(self) -> List[Dict[str, Any]]:
        return sidebar_updates(self.research.get('updates') or [], not self.is_edit, self.values.title)

    @property
    def research_url(self) -> str:
        return f"/research/{self.research['slug']}"

    @property
    def is_busy(self) -> bool:
        """A save is in flight or has succeeded and the page is about to change."""
        return self.state in (FormState.SUBMITTING, FormState.SUBMITTED)

    def _mark_edited(self) -> None:
        if not self.is_busy:
            self.state = FormState.EDITING

    def set_value(self, name: str, value: Any) -> None:
        """Change one field."""
        if name not in FIELD_NAMES:
            raise KeyError(f"Unknown field '{name}'")
        setattr(self.values, name, value)
        self._mark_edited()

    def remove_existing_image(self, index: int) -> None:
        """
        Drop a stored image from the update.

        The image is removed from the initial values as well, so removing it
        alone does not count as an unsaved change.
        """
        removed = self.values.existing_images[index]
        self.values.existing_images = [
            image for i, image in enumerate(self.values.existing_images) if i != index
        ]
        self.initial_values.existing_images = [
            image for image in self.initial_values.existing_images if image != removed
        ]
        self._mark_edited()

    def submit(self, is_draft: bool = False) -> Optional[Dict[str, Any]]:
        """
        Save the update, publishing it unless ``is_draft``.

        Drafts skip client-side validation. Calls made while a save is in
        flight, or after it succeeded, are ignored.

        Returns:
            The service response, or ``None`` when nothing was saved
        """
        if self.is_busy:
            return None

        if not is_draft:
            self.errors = validate_form(self.values)
            if self.errors:
                self.state = FormState.FAILED
                return None

        self.state = FormState.SUBMITTING
        self.intentional_navigation = True
        self.save_error_message = None

        try:
            result = self.service.upsert_update(
                self.research['id'],
                self.update_id,
                self.values,
                is_draft
            )
        except Exception as error:
            logger.error(f"Saving research update failed: {error}")
            self.save_error_message = str(error)
            self.intentional_navigation = False
            self.state = FormState.FAILED
            return None

        if not is_draft:
            self.celebrate()

        self.state = FormState.SUBMITTED
        if result:
            update_id = result['research_update']['id']
            url = f"{self.research_url}#update_{update_id}"
            self.schedule(NAVIGATION_DELAY, lambda: self.navigate(url))
        return result

    def submit_draft(self) -> Optional[Dict[str, Any]]:
        return self.submit(is_draft=True)

    def request_delete(self) -> None:
        """Open the delete confirmation; only existing updates can be deleted."""
        if self.is_edit and not self.is_saving:
            self.show_delete_modal = True

    def cancel_delete(self) -> None:
        self.show_delete_modal = False

    def confirm_delete(self) -> None:
        """Delete the update remotely, then reload the research page."""
        if not self.research_update:
            return
        self.show_delete_modal = False
        self.service.delete_update(self.research['id'], self.update_id)

        for update in self.research.get('updates') or []:
            if update.get('id') == self.update_id:
                update['deleted'] = True

        self.intentional_navigation = True
        self.navigate(self.research_url, full_reload=True)
