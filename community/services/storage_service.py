"""Local storage for research update attachments."""
import logging
import uuid
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from community.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageService:
    """Stores uploads below ``root`` and describes them as media dicts."""

    def __init__(self, root: Path, url_prefix: str = '/uploads'):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip('/')

    @staticmethod
    def extension(filename: str) -> str:
        return filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''

    def check(self, upload: FileStorage, allowed: Optional[Set[str]] = None) -> str:
        """Safe filename for ``upload``; ``StorageError`` when it cannot be stored."""
        filename = secure_filename(upload.filename or '')
        if not filename:
            raise StorageError('Uploaded file has no usable name')

        if allowed is not None and self.extension(filename) not in allowed:
            raise StorageError(f"File type not allowed: {filename}")
        return filename

    def check_all(self, uploads: Iterable[FileStorage], allowed: Optional[Set[str]] = None) -> None:
        for upload in uploads:
            if upload and upload.filename:
                self.check(upload, allowed)

    def save(self, upload: FileStorage, folder: str, allowed: Optional[Set[str]] = None) -> Dict:
        """
        Save one upload.

        Args:
            upload: File from the request
            folder: Sub-folder below the storage root
            allowed: Permitted lowercase extensions, any when ``None``

        Returns:
            Media descriptor with id, name, url and size
        """
        filename = self.check(upload, allowed)

        media_id = uuid.uuid4().hex
        relative = Path(folder) / f"{media_id}_{filename}"
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)

        try:
            upload.save(str(target))
        except OSError as e:
            logger.error(f"Saving upload {filename} failed: {str(e)}")
            target.unlink(missing_ok=True)
            raise StorageError(f"Could not store {filename}") from e

        return {
            'id': media_id,
            'name': filename,
            'url': f"{self.url_prefix}/{relative.as_posix()}",
            'size': target.stat().st_size,
        }

    def save_all(self, uploads: Iterable[FileStorage], folder: str, allowed: Optional[Set[str]] = None) -> List[Dict]:
        """
        Save every non-empty upload; empty form slots are skipped.

        All uploads are checked before any is written, and a failed write
        removes the files this call already stored.
        """
        uploads = [upload for upload in uploads if upload and upload.filename]
        self.check_all(uploads, allowed)

        saved = []
        try:
            for upload in uploads:
                saved.append(self.save(upload, folder, allowed))
        except StorageError:
            self.discard(saved)
            raise
        return saved

    def path_for(self, media: Dict) -> Path:
        relative = media['url'][len(self.url_prefix):].lstrip('/')
        return self.root / relative

    def discard(self, media_list: Iterable[Dict]) -> None:
        """Remove stored files, e.g. after the update they belonged to was rejected."""
        for media in media_list:
            try:
                self.path_for(media).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove {media.get('name')}: {str(e)}")
