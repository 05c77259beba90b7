"""Experiment document session.

ExperimentSession owns at most one open Document. Callers open a new or
existing ``.jmx`` file, apply editor operations through the session, and close
it, optionally saving. Every mutator either commits a fully validated new
document or raises and leaves the open document untouched.

Example:
--------
>>> from jmxdoc.session import ExperimentSession
>>> with ExperimentSession() as session:
...     session.add_target_set("SetA")
...     session.upsert_target("SetA", "fp", "spot", ["dim", [0.5, 0.5, 0.1, 0.1]])
...     session.add_trial_set("Fixation")
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from jmxdoc import editor
from jmxdoc.config import Settings
from jmxdoc.domain.document import Document
from jmxdoc.domain.exceptions import DocumentLoadError, SessionError
from jmxdoc.serialize import document_to_dict, loads
from jmxdoc.utils import write_json

logger = logging.getLogger(__name__)

JMX_SUFFIX = ".jmx"


def _check_suffix(path: Path) -> None:
    if path.suffix != JMX_SUFFIX:
        raise SessionError(f"JMX document file must have the '{JMX_SUFFIX}' extension: {path}", context={"path": str(path)})


def load_document(path: Union[str, Path]) -> Document:
    """Read, migrate and validate the JMX document at ``path``.

    Raises:
        DocumentLoadError: Bad extension, missing file, or invalid content
    """
    path = Path(path)
    if path.suffix != JMX_SUFFIX:
        raise DocumentLoadError(f"JMX document file must have the '{JMX_SUFFIX}' extension: {path}", context={"path": str(path)})
    if not path.is_file():
        raise DocumentLoadError(f"JMX document file not found: {path}", context={"path": str(path)})

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentLoadError(f"Failed to read JMX document: {exc}", context={"path": str(path)}) from exc
    try:
        doc = loads(text)
    except DocumentLoadError as exc:
        raise exc.with_context(path=str(path))
    logger.info(f"Loaded JMX document: {path}")
    return doc


def save_document(doc: Document, path: Union[str, Path], indent: int = 2, create_parent_dirs: bool = False) -> Path:
    """Write ``doc`` to ``path`` at the current version.

    Raises:
        SessionError: Bad extension, missing parent directory, or write failure
    """
    path = Path(path)
    _check_suffix(path)
    if not create_parent_dirs and not path.parent.is_dir():
        raise SessionError(f"Parent directory does not exist: {path.parent}", context={"path": str(path)})
    try:
        write_json(document_to_dict(doc), path, indent=indent, mkdir=create_parent_dirs)
    except OSError as exc:
        raise SessionError(f"Failed to write JMX document: {exc}", context={"path": str(path)}) from exc
    logger.info(f"Saved JMX document: {path}")
    return path


class ExperimentSession:
    """Handle owning the single open JMX document.

    Attributes:
        settings: Library settings (file I/O options)
        document: The open document, or None
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings if settings is not None else Settings()
        self.document: Optional[Document] = None
        self.path: Optional[Path] = None

    @property
    def is_open(self) -> bool:
        return self.document is not None

    def open(self, path: Optional[Union[str, Path]] = None) -> Document:
        """Create an empty document, or load ``path`` when given.

        Raises:
            SessionError: A document is already open
            DocumentLoadError: ``path`` cannot be loaded
        """
        if self.is_open:
            raise SessionError("A JMX document is already open", context={"path": str(self.path) if self.path else None})
        if path:
            self.document = load_document(path)
            self.path = Path(path)
        else:
            self.document = Document()
            self.path = None
            logger.info("Opened new empty JMX document")
        return self.document

    def close(self, save_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
        """Release the document, saving it to ``save_path`` first when given.

        The document is released even if saving fails; the save error is
        raised afterwards.
        """
        if not self.is_open:
            raise SessionError("No JMX document is open")
        doc = self.document
        self.document = None
        self.path = None

        saved = None
        if save_path:
            saved = save_document(doc, save_path, indent=self.settings.io.indent, create_parent_dirs=self.settings.io.create_parent_dirs)
        logger.info("Closed JMX document")
        return saved

    def __enter__(self) -> "ExperimentSession":
        # Opens a new empty document unless one was opened explicitly; leaving discards it
        if not self.is_open:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.is_open:
            self.close()

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def _apply(self, operation, *args: Any, **kwargs: Any) -> Document:
        if not self.is_open:
            raise SessionError(f"Cannot {operation.__name__}: no JMX document is open")
        self.document = operation(self.document, *args, **kwargs)
        return self.document

    def set_settings(self, settings: Any) -> Document:
        return self._apply(editor.set_settings, settings)

    def upsert_channel_config(self, name: str, channels: Sequence[Any]) -> Document:
        return self._apply(editor.upsert_channel_config, name, channels)

    def upsert_perturbation(self, pert: Any) -> Document:
        return self._apply(editor.upsert_perturbation, pert)

    def add_target_set(self, name: str) -> Document:
        return self._apply(editor.add_target_set, name)

    def add_trial_set(self, name: str) -> Document:
        return self._apply(editor.add_trial_set, name)

    def add_trial_subset(self, set_name: str, name: str) -> Document:
        return self._apply(editor.add_trial_subset, set_name, name)

    def upsert_target(self, set_name: str, name: str, target_type: str, params: Any = ()) -> Document:
        return self._apply(editor.upsert_target, set_name, name, target_type, params)

    def upsert_trial(self, set_name: str, trial: Union[Any, Mapping[str, Any]], subset: Optional[str] = None) -> Document:
        return self._apply(editor.upsert_trial, set_name, trial, subset=subset)
