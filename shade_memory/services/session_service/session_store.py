"""
Session store - durable, file-based archive of chat sessions.

Layout under the user data path:

    data/sessions/<sessionId>.json
    data/screenshots/<sessionId>/<messageId>.<ext>

Every record and screenshot blob is written through write_file_atomic.
Session ids and screenshot file names are reduced to [A-Za-z0-9_-] before
they are used to build a path.
"""

import base64
import json
import os
import posixpath
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from shade_memory.config.app_config import StorageConfig
from shade_memory.services.errors import (
    InvalidInputError,
    InvalidSessionFileError,
    SessionNotFoundError,
    StorageIOError,
)
from shade_memory.services.session_service.models import (
    USER_TYPE,
    Session,
    SessionMessage,
    SessionSummary,
    generate_id,
    is_safe_relative_path,
    parse_timestamp,
    safe_text,
    sanitize_path_part,
    utcnow_iso,
)
from shade_memory.services.session_service.title_generator import generate_title
from shade_memory.utils.atomic_write import write_file_atomic
from shade_memory.utils.json_safe import safe_parse_json
from shade_memory.utils.logging_config import get_logger, log_execution_time, log_session_event


LEGACY_SCREENSHOT_PREFIX = "screenshots/"


class SessionStore:
    """
    Repository for session persistence.
    Handles CRUD, screenshot blobs, title search, pinning and retention.
    """

    def __init__(self, user_data_path: Union[str, Path], config: Optional[StorageConfig] = None):
        """
        Initialize session store

        Args:
            user_data_path: Application data directory
            config: Storage configuration (retention, titles, screenshot format)
        """
        if not user_data_path:
            raise InvalidInputError("user_data_path is required for SessionStore")

        self.logger = get_logger(__name__)
        self.config = config or StorageConfig(user_data_path=str(user_data_path))
        self.user_data_path = Path(user_data_path)
        self.data_dir = self.user_data_path / "data"
        self.sessions_dir = self.data_dir / "sessions"
        self.screenshots_dir = self.data_dir / "screenshots"

        self.ensure_sessions_dir()
        self.migrate_data_structure()

    # -- paths ---------------------------------------------------------------

    def ensure_sessions_dir(self) -> None:
        try:
            self.sessions_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Error creating sessions directory: {e}")
            raise StorageIOError(f"Cannot create sessions directory {self.sessions_dir}: {e}") from e

    def session_path_for_id(self, session_id: Any) -> Path:
        """
        Path of the JSON record for a session id

        Raises:
            InvalidInputError: If the id is empty or has no safe characters
        """
        if not session_id or not isinstance(session_id, str):
            raise InvalidInputError("Session id is required")

        safe_id = sanitize_path_part(session_id)
        if not safe_id:
            raise InvalidInputError("Invalid session id")

        return self.sessions_dir / f"{safe_id}.json"

    def screenshot_dir_for_session(self, session_id: Any) -> Path:
        safe_id = sanitize_path_part(session_id)
        if not safe_id:
            raise InvalidInputError("Invalid session id")
        return self.screenshots_dir / safe_id

    # -- screenshots ---------------------------------------------------------

    def _screenshot_filename(self, message_id: str) -> str:
        return f"{sanitize_path_part(message_id) or generate_id()}.{self.config.screenshot_extension}"

    def _write_screenshot(self, session_id: str, filename: str, data: bytes) -> str:
        directory = self.screenshot_dir_for_session(session_id)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            write_file_atomic(directory / filename, data)
        except OSError as e:
            self.logger.error(f"Error writing screenshot for session {session_id}: {e}")
            raise StorageIOError(f"Cannot write screenshot {filename}: {e}") from e

        return filename

    def _discard_blobs(self, paths: List[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(f"Could not remove screenshot {path.name}: {e}")

    def read_screenshot_base64(self, session_id: str, screenshot_path: str) -> str:
        """
        Read a screenshot blob as base64

        Args:
            session_id: Owning session
            screenshot_path: Path recorded on the message; the legacy
                "screenshots/<file>" form is accepted

        Returns:
            Base64 text, or "" when there is no path or the blob is missing

        Raises:
            InvalidInputError: If the path is absolute or contains traversal
        """
        rel = safe_text(screenshot_path)
        if not rel:
            return ""
        if not is_safe_relative_path(rel):
            raise InvalidInputError(f"Unsafe screenshot path: {rel!r}")

        rel = posixpath.normpath(rel.replace("\\", "/"))
        if rel.startswith(LEGACY_SCREENSHOT_PREFIX):
            rel = posixpath.basename(rel)

        directory = self.screenshot_dir_for_session(session_id)
        full_path = directory / rel
        if os.path.commonpath([os.path.abspath(full_path), os.path.abspath(directory)]) != os.path.abspath(directory):
            raise InvalidInputError(f"Unsafe screenshot path: {screenshot_path!r}")

        try:
            data = full_path.read_bytes()
        except FileNotFoundError:
            return ""
        except OSError as e:
            self.logger.error(f"Error reading screenshot {full_path}: {e}")
            raise StorageIOError(f"Cannot read screenshot {rel}: {e}") from e

        return base64.b64encode(data).decode("ascii")

    def get_last_screenshot_base64(self, session: Session) -> str:
        """Most recent screenshot of a session (used when a session is resumed)"""
        for message in reversed(session.messages):
            if message.type == USER_TYPE and message.has_screenshot and message.screenshot_path:
                return self.read_screenshot_base64(session.id, message.screenshot_path)
        return ""

    # -- records -------------------------------------------------------------

    def _read_existing_title(self, path: Path) -> str:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError:
            return ""
        existing = safe_parse_json(raw)
        if not isinstance(existing, dict):
            return ""
        return safe_text(existing.get("title")).strip()

    def save_session(self, session: Union[Session, Dict[str, Any]]) -> SessionSummary:
        """
        Create or update a session

        A title given by the caller wins; otherwise the title already on disk
        is kept, and only a brand-new untitled session gets a generated one.
        If the record cannot be written, screenshot files created by this call
        are removed again.

        Args:
            session: Session object or camelCase dict from the chat window

        Returns:
            SessionSummary of the stored record
        """
        if isinstance(session, Session):
            data = session.to_dict()
            data["messages"] = list(session.messages)
        elif isinstance(session, dict):
            data = session
        else:
            raise InvalidInputError("Session must be a Session or a dict")

        self.ensure_sessions_dir()

        requested_id = safe_text(data.get("id"))
        path = self.session_path_for_id(requested_id or generate_id())
        session_id = path.stem

        record = Session.from_dict(data)
        record.id = session_id
        record.updated_at = utcnow_iso()

        requested_title = record.title.strip()
        existing_title = ""
        if not requested_title and requested_id:
            existing_title = self._read_existing_title(path)

        screenshot_dir = self.screenshot_dir_for_session(session_id)
        new_blobs: List[Path] = []
        try:
            for message in record.messages:
                if message.type == USER_TYPE and message.has_screenshot and message.screenshot:
                    filename = self._screenshot_filename(message.id)
                    if not (screenshot_dir / filename).exists():
                        new_blobs.append(screenshot_dir / filename)
                    message.screenshot_path = self._write_screenshot(session_id, filename, message.screenshot)
                    message.screenshot = None

            record.title = requested_title or existing_title or generate_title(
                record.messages,
                max_length=self.config.title_max_length,
                default=self.config.default_title,
            )

            try:
                write_file_atomic(path, json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
            except OSError as e:
                self.logger.error(f"Error saving session {session_id}: {e}")
                raise StorageIOError(f"Cannot save session {session_id}: {e}") from e
        except StorageIOError:
            # blobs created by this call are unreferenced without the record
            self._discard_blobs(new_blobs)
            raise

        log_session_event(self.logger, "saved", session_id, message_count=len(record.messages))
        return record.to_summary()

    def load_session(self, session_id: str) -> Session:
        """
        Load a full session

        Raises:
            SessionNotFoundError: If no record exists for the id
            InvalidSessionFileError: If the record is not a JSON object
        """
        path = self.session_path_for_id(session_id)

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SessionNotFoundError(f"Session not found: {session_id}") from None
        except OSError as e:
            self.logger.error(f"Error reading session {session_id}: {e}")
            raise StorageIOError(f"Cannot read session {session_id}: {e}") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise InvalidSessionFileError(f"Invalid session file: {path.name}") from e

        if not isinstance(data, dict):
            raise InvalidSessionFileError(f"Invalid session file: {path.name}")

        session = Session.from_dict(data, default_title=self.config.default_title)
        session.id = session.id or path.stem
        return session

    def _scan_sessions(self) -> List[Tuple[SessionSummary, Dict[str, Any], Path]]:
        """Readable records as (summary, raw record, file path), newest first"""
        self.ensure_sessions_dir()

        results = []
        for path in sorted(self.sessions_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    raise InvalidSessionFileError(f"Invalid session file: {path.name}")

                session = Session.from_dict(data, default_title=self.config.default_title)
                session.id = session.id or path.stem
                results.append((session.to_summary(), data, path))
            except (OSError, ValueError) as e:
                self.logger.warning(f"Skipping unreadable session file {path.name}: {e}")

        results.sort(key=lambda item: parse_timestamp(item[0].updated_at), reverse=True)
        return results

    def get_all_sessions(self) -> List[SessionSummary]:
        """
        List all sessions, newest update first

        Unreadable records are skipped and logged.
        """
        return [summary for summary, _, _ in self._scan_sessions()]

    def delete_session(self, session_id: str) -> bool:
        """
        Delete a session record and its screenshots; missing sessions are fine

        Returns:
            True
        """
        path = self.session_path_for_id(session_id)
        self._remove_session_files(path, self.screenshot_dir_for_session(session_id))
        return True

    def _remove_session_files(self, path: Path, screenshot_dir: Optional[Path]) -> None:
        try:
            path.unlink(missing_ok=True)
            if screenshot_dir is not None:
                shutil.rmtree(screenshot_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(f"Error deleting session {path.stem}: {e}")
            raise StorageIOError(f"Cannot delete session {path.stem}: {e}") from e

        log_session_event(self.logger, "deleted", path.stem)

    def _remove_session_file(self, path: Path) -> None:
        """Delete a listed record by its file, plus the screenshots named after it"""
        safe_stem = sanitize_path_part(path.stem)
        self._remove_session_files(path, self.screenshots_dir / safe_stem if safe_stem else None)

    def delete_all_sessions(self) -> int:
        """Delete every session; returns how many were removed"""
        paths = [path for _, _, path in self._scan_sessions()]
        for path in paths:
            self._remove_session_file(path)
        return len(paths)

    def rename_session(self, session_id: str, new_title: str) -> SessionSummary:
        session = self.load_session(session_id)
        session.title = safe_text(new_title).strip() or self.config.default_title
        return self.save_session(session)

    def toggle_session_saved(self, session_id: str) -> SessionSummary:
        session = self.load_session(session_id)
        session.is_saved = not session.is_saved
        return self.save_session(session)

    def set_session_saved(self, session_id: str, is_saved: bool) -> SessionSummary:
        session = self.load_session(session_id)
        session.is_saved = bool(is_saved)
        return self.save_session(session)

    def search_sessions(self, query: Optional[str]) -> List[SessionSummary]:
        """Case-insensitive substring search over titles"""
        sessions = self.get_all_sessions()
        needle = safe_text(query).strip().lower()
        if not needle:
            return sessions
        return [s for s in sessions if needle in s.title.lower()]

    def cleanup_old_sessions(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Delete sessions older than the retention window

        The age is measured from updatedAt, falling back to createdAt.
        Saved (pinned) sessions are never deleted.

        Args:
            now: Reference time (defaults to the current time)

        Returns:
            {"deleted": number of sessions removed}
        """
        now = parse_timestamp(now) if now else datetime.now(timezone.utc)
        max_age = timedelta(days=self.config.retention_days)

        with log_execution_time(self.logger, "session cleanup", retention_days=self.config.retention_days):
            expired = []
            for summary, raw, path in self._scan_sessions():
                if summary.is_saved:
                    continue
                reference = parse_timestamp(raw.get("updatedAt")) or parse_timestamp(raw.get("createdAt"))
                if reference is None:
                    continue
                if now - reference > max_age:
                    expired.append(path)

            for path in expired:
                self._remove_session_file(path)

        return {"deleted": len(expired)}

    # -- legacy layout -------------------------------------------------------

    def migrate_data_structure(self) -> int:
        """
        Move data from the legacy layout into the current one

        Legacy layout:

            sessions/<id>.json
            sessions/_assets/<id>/screenshots/<file>

        Existing files in the new layout are never overwritten. Best effort:
        failures are logged per file and skipped.

        Returns:
            Number of files moved
        """
        legacy_sessions_dir = self.user_data_path / "sessions"
        if not legacy_sessions_dir.is_dir():
            return 0

        self.logger.info("Migrating sessions to new data structure")
        moved = 0

        for old_path in legacy_sessions_dir.glob("*.json"):
            moved += self._move_if_absent(old_path, self.sessions_dir / old_path.name)

        legacy_assets_dir = legacy_sessions_dir / "_assets"
        if legacy_assets_dir.is_dir():
            for session_dir in legacy_assets_dir.iterdir():
                old_screenshots = session_dir / "screenshots"
                if not old_screenshots.is_dir():
                    continue
                target_dir = self.screenshots_dir / sanitize_path_part(session_dir.name)
                for image in old_screenshots.iterdir():
                    moved += self._move_if_absent(image, target_dir / image.name)

        self.logger.info(f"Migration completed: {moved} files moved")
        return moved

    def _move_if_absent(self, source: Path, target: Path) -> int:
        if target.exists():
            return 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, target)
        except OSError as e:
            self.logger.error(f"Failed to move {source}: {e}")
            return 0
        return 1
