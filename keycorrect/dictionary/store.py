"""
Word Store for KeyCorrect
=========================
Per-language dictionaries: an immutable base set read from the bundled
assets plus a mutable custom overlay persisted next to it.

Features:
- Per-language load with failure isolation
- Prefix index shared by every active language, rebuilt on demand
- Custom word add/remove with synchronous overlay flush
- Backup export/import through BackupCodec
- Background load/export/import through the job manager

File formats:
    <dict_dir>/<lang>.txt               base words, one per line
    <dict_dir>/<lang>_contractions.txt  trigger:expansion per line (optional)
    <custom_dir>/<lang>_custom.txt      user words, disjoint from the base set
"""

import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Union

from ..backup import BackupCodec, ArchiveSource
from ..base import IntegrationBase
from ..config import KeyCorrectConfig, get_config
from ..config_logging import (
    get_logger, DictionaryLoadError, PersistenceError, WordValidationError,
    BackupFormatError, IncompatibleBackupError,
)
from ..job_manager import JobManager, get_job_manager
from .prefix_index import PrefixIndex
from .results import (
    AddWordResult, AddWordStatus, ExportResult, ExportStatus,
    ImportMode, ImportResult, ImportStatus, LanguageLoadResult, LoadReport,
)
from .validation import (
    normalize_word, is_valid_custom_word, is_valid_language_code, validate_custom_word,
)

logger = get_logger(__name__)

BASE_SUFFIX = ".txt"
CUSTOM_SUFFIX = "_custom.txt"
CONTRACTIONS_SUFFIX = "_contractions.txt"


@dataclass
class LanguageDictionary:
    """Words of one language."""
    code: str
    base: FrozenSet[str] = frozenset()
    custom: Set[str] = field(default_factory=set)
    contractions: Dict[str, str] = field(default_factory=dict)
    base_loaded: bool = False
    # Base words of a language outside the active set, for duplicate checks only
    reference_base: FrozenSet[str] = frozenset()

    def __contains__(self, word: str) -> bool:
        return word in self.base or word in self.custom

    def has_word(self, word: str) -> bool:
        """Membership including the reference base of an inactive language."""
        return word in self or word in self.reference_base

    @property
    def word_count(self) -> int:
        return len(self.base) + len(self.custom)


class WordStore(IntegrationBase):
    """
    Owns every dictionary word set and the prefix index over them.

    Mutations (load swap, add, remove, clear, import, index rebuild) are
    serialized on one lock. Lookups read the current language map without
    locking; the map itself is replaced, never resized in place.

    Usage:
        store = WordStore(custom_dir=tmp_dir)
        report = store.load(['en', 'id'])
        store.contains('world')
        store.add_custom_word('jagoan', 'id')
    """

    INTEGRATION_NAME = "WordStore"
    INTEGRATION_VERSION = "1.0.0"

    def __init__(
        self,
        dict_dir: Optional[Union[str, Path]] = None,
        custom_dir: Optional[Union[str, Path]] = None,
        config: Optional[KeyCorrectConfig] = None,
        codec: Optional[BackupCodec] = None,
        job_manager: Optional[JobManager] = None
    ):
        """
        Initialize the store. Nothing is read until load().

        Args:
            dict_dir: Directory holding base dictionaries and contractions
            custom_dir: Directory holding custom overlay files
            config: Configuration (global config if omitted)
            codec: Backup codec for export/import
            job_manager: Job manager for the *_async operations
        """
        super().__init__()
        self.config = config or get_config()
        self.dict_dir = Path(dict_dir or self.config.dictionary.dict_dir)
        self.custom_dir = Path(custom_dir or self.config.dictionary.custom_dir).expanduser()
        self.codec = codec or BackupCodec(
            format_version=self.config.backup.format_version,
            app_version=self.config.backup.app_version,
        )
        self._job_manager = job_manager

        self._lock = threading.RLock()
        self._languages: Dict[str, LanguageDictionary] = {}
        self._index = PrefixIndex(self._iter_all_words, self._lock)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, languages: Optional[Iterable[str]] = None) -> LoadReport:
        """
        Load base dictionaries, overlays and contractions.

        The requested languages become the active set. One language
        failing is reported in its LoadReport entry and does not stop
        the others.
        """
        requested = list(dict.fromkeys(languages or self.config.dictionary.languages))
        report = LoadReport()
        loaded: Dict[str, LanguageDictionary] = {}

        with logger.log_operation("dictionary_load", languages=requested):
            for code in requested:
                try:
                    lang = self._read_language(code)
                except DictionaryLoadError as e:
                    logger.error(f"Failed to load '{code}' dictionary: {e.message}", language=code)
                    report.results[code] = LanguageLoadResult(language=code, success=False, error=e.message)
                    continue

                loaded[code] = lang
                report.results[code] = LanguageLoadResult(
                    language=code,
                    success=True,
                    word_count=len(lang.base),
                    custom_word_count=len(lang.custom),
                    contraction_count=len(lang.contractions),
                )
                logger.info(f"Loaded '{code}' dictionary: {len(lang.base)} words, "
                            f"{len(lang.custom)} custom, {len(lang.contractions)} contractions",
                            language=code)

            with self._lock:
                self._languages = loaded
                self._index.invalidate()
                self._available = bool(loaded)
                self._error = None if report.success else (
                    "Failed languages: " + ", ".join(report.failed_languages))

        return report

    def _read_language(self, code: str) -> LanguageDictionary:
        if not is_valid_language_code(code):
            raise DictionaryLoadError(f"Invalid language code: {code!r}", language=code)

        base_path = self.dict_dir / f"{code}{BASE_SUFFIX}"
        if not base_path.exists():
            raise DictionaryLoadError(f"Dictionary file not found: {base_path}", language=code)

        base = frozenset(self._read_word_file(base_path, code))
        if not base:
            raise DictionaryLoadError(f"Dictionary file is empty: {base_path}", language=code)

        return LanguageDictionary(
            code=code,
            base=base,
            custom=self._read_overlay(code, base),
            contractions=self._read_contractions(code),
            base_loaded=True,
        )

    def _read_inactive_language(self, code: str) -> LanguageDictionary:
        """
        Build an overlay-only entry for a language outside the active set.

        The overlay already on disk is read so the next flush keeps its
        words. The base file, when present, is held as a reference set so
        base words are still rejected as duplicates without becoming
        lookup candidates.
        """
        base_path = self.dict_dir / f"{code}{BASE_SUFFIX}"
        base = frozenset(self._read_word_file(base_path, code)) if base_path.exists() else frozenset()
        return LanguageDictionary(code=code, custom=self._read_overlay(code, base), reference_base=base)

    def _read_overlay(self, code: str, base: FrozenSet[str]) -> Set[str]:
        custom: Set[str] = set()
        custom_path = self._custom_path(code)
        if custom_path.exists():
            for word in self._read_word_file(custom_path, code):
                if not is_valid_custom_word(word):
                    logger.warning(f"Skipping malformed custom word {word!r}", language=code)
                elif word not in base:
                    custom.add(word)
        return custom

    @staticmethod
    def _read_word_file(path: Path, code: str) -> Iterator[str]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                words = [line.strip().lower() for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise DictionaryLoadError(f"Could not read {path}: {e}", language=code)
        return (word for word in words if word and not word.startswith('#'))

    def _read_contractions(self, code: str) -> Dict[str, str]:
        path = self.dict_dir / f"{code}{CONTRACTIONS_SUFFIX}"
        contractions: Dict[str, str] = {}
        if not path.exists():
            return contractions

        try:
            with open(path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith('#') or ':' not in line:
                        continue
                    trigger, expansion = line.split(':', 1)
                    trigger, expansion = trigger.strip().lower(), expansion.strip()
                    if trigger and expansion:
                        contractions[trigger] = expansion
        except (OSError, UnicodeDecodeError) as e:
            # Contractions are optional; the language stays usable without them
            logger.warning(f"Could not read contractions for '{code}': {e}", language=code)
            return {}

        return contractions

    def clear_dictionaries(self):
        """Drop every language from memory."""
        with self._lock:
            self._languages = {}
            self._index.invalidate()
            self._available = False
        logger.info("Cleared all dictionaries")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def contains(self, word: str, language: Optional[str] = None) -> bool:
        """Check base and custom words of one or all active languages."""
        w = normalize_word(word)
        if not w:
            return False
        languages = self._languages
        if language is not None:
            lang = languages.get(language)
            return lang is not None and w in lang
        return any(w in lang for lang in languages.values())

    def is_custom_word(self, word: str, language: Optional[str] = None) -> bool:
        """Check only the custom overlays."""
        w = normalize_word(word)
        languages = self._languages
        if language is not None:
            lang = languages.get(language)
            return lang is not None and w in lang.custom
        return any(w in lang.custom for lang in languages.values())

    def detect_language(self, word: str) -> Optional[str]:
        """First active language (in load order) that knows the word."""
        w = normalize_word(word)
        for code, lang in self._languages.items():
            if w in lang:
                return code
        return None

    def get_contraction(self, word: str) -> Optional[str]:
        """Expansion for a contraction trigger, case-insensitive."""
        w = normalize_word(word)
        for lang in self._languages.values():
            expansion = lang.contractions.get(w)
            if expansion is not None:
                return expansion
        return None

    def prefix_lookup(self, prefix: str) -> FrozenSet[str]:
        """Words starting with `prefix` across registered languages."""
        return self._index.lookup(prefix)

    def prefix_keys(self, initial: str) -> List[str]:
        """Prefix bucket keys starting with the given letter."""
        return self._index.keys_with_initial(initial)

    def get_loaded_languages(self) -> List[str]:
        """Languages whose base dictionary is loaded, in load order."""
        return [code for code, lang in self._languages.items() if lang.base_loaded]

    def get_words_for_language(self, language: str) -> FrozenSet[str]:
        lang = self._languages.get(language)
        if lang is None:
            return frozenset()
        with self._lock:
            return lang.base | frozenset(lang.custom)

    @property
    def word_count(self) -> int:
        return sum(lang.word_count for lang in self._languages.values())

    def _iter_all_words(self) -> Iterator[str]:
        # Called by the prefix index with self._lock held
        for lang in self._languages.values():
            yield from lang.base
            yield from lang.custom

    # ------------------------------------------------------------------
    # Custom words
    # ------------------------------------------------------------------

    def add_custom_word(self, word: str, language: str) -> AddWordResult:
        """
        Add a user word to one language and flush its overlay.

        If the flush fails the word stays usable for this session and the
        result is ERROR with the reason.
        """
        try:
            w = validate_custom_word(word, language)
        except WordValidationError as e:
            logger.debug(f"Rejected custom word: {e.message}", word=e.word)
            return AddWordResult(AddWordStatus.INVALID_FORMAT, e.word or "", str(language),
                                 reason=e.message)

        with self._lock:
            try:
                lang = self._get_or_register(language)
            except DictionaryLoadError as e:
                logger.error(f"Not adding '{w}': {e.message}", language=language)
                return AddWordResult(AddWordStatus.ERROR, w, language, reason=e.message)

            if lang.has_word(w):
                return AddWordResult(AddWordStatus.ALREADY_EXISTS, w, language,
                                     reason="already in dictionary")

            lang.custom.add(w)
            self._index.invalidate()

            try:
                self._persist_overlay(lang)
            except PersistenceError as e:
                logger.error(f"Added '{w}' in memory only: {e.message}", language=language)
                return AddWordResult(AddWordStatus.ERROR, w, language, reason=e.message)

        logger.info(f"Added custom word '{w}'", language=language)
        return AddWordResult(AddWordStatus.SUCCESS, w, language)

    def remove_custom_word(self, word: str, language: str) -> bool:
        """
        Remove a user word and rewrite the overlay (deleted when empty).

        Returns False when the word is not a custom word of `language`
        or the overlay could not be rewritten.
        """
        w = normalize_word(word)
        with self._lock:
            lang = self._languages.get(language)
            if lang is None and language in self._overlay_codes_on_disk():
                try:
                    lang = self._get_or_register(language)
                except DictionaryLoadError as e:
                    logger.error(f"Could not read overlay: {e.message}", language=language)
                    return False
            if lang is None or w not in lang.custom:
                return False

            lang.custom.discard(w)
            self._index.invalidate()

            try:
                self._persist_overlay(lang)
            except PersistenceError as e:
                logger.error(f"Removed '{w}' in memory only: {e.message}", language=language)
                return False

        logger.info(f"Removed custom word '{w}'", language=language)
        return True

    def clear_custom_words(self, language: Optional[str] = None) -> bool:
        """Empty one overlay, or every overlay when `language` is None."""
        with self._lock:
            ok = self._clear_overlays(language)
        logger.info("Cleared custom words" + (f" for '{language}'" if language else " (all languages)"),
                    language=language)
        return ok

    def get_custom_words_by_language(self) -> Dict[str, List[str]]:
        """
        Sorted custom words for every language with a non-empty overlay.

        Overlay files of languages outside the active set are included;
        an unreadable one is logged and left out.
        """
        with self._lock:
            return self._collect_custom_words(skip_unreadable=True)

    @property
    def custom_word_count(self) -> int:
        """Custom words held in memory for the registered languages."""
        return sum(len(lang.custom) for lang in self._languages.values())

    def _get_or_register(self, language: str) -> LanguageDictionary:
        # Caller holds self._lock
        lang = self._languages.get(language)
        if lang is None:
            lang = self._read_inactive_language(language)
            self._languages = {**self._languages, language: lang}
            if lang.custom:
                self._index.invalidate()
        return lang

    def _overlay_codes_on_disk(self) -> List[str]:
        """Language codes of the overlay files in custom_dir, sorted."""
        if not self.custom_dir.is_dir():
            return []
        codes = []
        for path in sorted(self.custom_dir.glob(f"*{CUSTOM_SUFFIX}")):
            code = path.name[:-len(CUSTOM_SUFFIX)]
            if is_valid_language_code(code):
                codes.append(code)
        return codes

    def _collect_custom_words(self, skip_unreadable: bool) -> Dict[str, List[str]]:
        # Caller holds self._lock
        words = {code: lang.custom for code, lang in self._languages.items()}
        for code in self._overlay_codes_on_disk():
            if code in words:
                continue
            try:
                words[code] = self._read_inactive_language(code).custom
            except DictionaryLoadError as e:
                if not skip_unreadable:
                    raise
                logger.warning(f"Skipping unreadable overlay: {e.message}", language=code)
        return {code: sorted(custom) for code, custom in words.items() if custom}

    def _clear_overlays(self, language: Optional[str]) -> bool:
        # Caller holds self._lock
        if language is not None:
            codes = [language] if is_valid_language_code(language) else []
        else:
            codes = list(dict.fromkeys([*self._languages, *self._overlay_codes_on_disk()]))

        ok = True
        for code in codes:
            lang = self._languages.get(code)
            if lang is None:
                ok = self._remove_overlay_file(code) and ok
                continue
            lang.custom.clear()
            try:
                self._persist_overlay(lang)
            except PersistenceError as e:
                logger.error(f"Could not clear overlay: {e.message}", language=code)
                ok = False

        if codes:
            self._index.invalidate()
        return ok

    def _remove_overlay_file(self, code: str) -> bool:
        path = self._custom_path(code)
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.error(f"Could not delete {path}: {e}", language=code)
            return False
        return True

    def _custom_path(self, code: str) -> Path:
        return self.custom_dir / f"{code}{CUSTOM_SUFFIX}"

    def _persist_overlay(self, lang: LanguageDictionary):
        """Rewrite the overlay file of one language; delete it when empty."""
        path = self._custom_path(lang.code)
        try:
            if not lang.custom:
                if path.exists():
                    path.unlink()
                return

            self.custom_dir.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_name(path.name + ".tmp")
            with open(temp_path, 'w', encoding='utf-8') as f:
                for word in sorted(lang.custom):
                    f.write(word + "\n")
            shutil.move(str(temp_path), str(path))
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}", path=str(path))

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export_custom_words(self, path: Optional[Union[str, Path]] = None) -> ExportResult:
        """
        Encode every non-empty overlay into a backup archive.

        Args:
            path: Also write the archive to this file when given
        """
        with self._lock:
            try:
                words = self._collect_custom_words(skip_unreadable=False)
            except DictionaryLoadError as e:
                logger.error(f"Export failed: {e.message}", language=e.language)
                return ExportResult(ExportStatus.ERROR, message=e.message)

        manifest = self.codec.build_manifest(words)
        if manifest.total_words == 0:
            logger.info("No custom words to export")
            return ExportResult(ExportStatus.NO_WORDS_TO_EXPORT, message="No custom words to export")

        try:
            archive = self.codec.encode(manifest)
            if path is not None:
                Path(path).write_bytes(archive)
        except (BackupFormatError, OSError) as e:
            logger.error(f"Export failed: {e}")
            return ExportResult(ExportStatus.ERROR, message=str(e))

        logger.info(f"Exported {manifest.total_words} custom words",
                    word_count=manifest.total_words)
        return ExportResult(
            ExportStatus.SUCCESS,
            archive=archive,
            word_count=manifest.total_words,
            language_count=len(manifest.languages),
        )

    def import_custom_words(self, archive: ArchiveSource,
                            mode: Union[ImportMode, str] = ImportMode.MERGE) -> ImportResult:
        """
        Apply a backup archive to the overlays.

        Every word is re-validated with the add_custom_word rules.
        MERGE skips duplicates and removes nothing; REPLACE clears every
        overlay first. Confirming REPLACE with the user is the caller's job.
        """
        try:
            mode = ImportMode(mode)
        except ValueError:
            return ImportResult.error(f"Unknown import mode: {mode!r}")

        try:
            manifest = self.codec.decode(archive)
        except IncompatibleBackupError as e:
            logger.error(e.message)
            return ImportResult.incompatible_version(e.backup_version, e.current_version)
        except BackupFormatError as e:
            logger.error(f"Invalid backup: {e.message}")
            return ImportResult.invalid_format(e.message)

        result = ImportResult(status=ImportStatus.SUCCESS)
        added: Dict[str, int] = {}

        with self._lock:
            if mode is ImportMode.REPLACE and not self._clear_overlays(None):
                return ImportResult.error("Could not clear existing custom words")

            for entry in manifest.languages:
                code = entry.language_code
                lang = None
                if is_valid_language_code(code):
                    try:
                        lang = self._get_or_register(code)
                    except DictionaryLoadError as e:
                        logger.error(f"Skipping {len(entry.words)} words: {e.message}", language=code)
                        result.total_words += len(entry.words)
                        result.error_words += len(entry.words)
                        continue

                for raw in entry.words:
                    result.total_words += 1
                    w = normalize_word(raw)
                    if lang is None or not is_valid_custom_word(w):
                        result.invalid_words += 1
                        continue

                    if lang.has_word(w):
                        result.duplicate_words += 1
                        continue

                    lang.custom.add(w)
                    added[code] = added.get(code, 0) + 1

            if added:
                self._index.invalidate()

            for code, count in added.items():
                try:
                    self._persist_overlay(self._languages[code])
                except PersistenceError as e:
                    # Words stay usable in memory; report them as errors
                    logger.error(f"Imported words kept in memory only: {e.message}", language=code)
                    result.error_words += count
                    continue
                result.added_words += count
                result.language_breakdown[code] = count

        logger.info(f"Imported {result.added_words} words ({result.duplicate_words} duplicates, "
                    f"{result.invalid_words} invalid, {result.error_words} errors)",
                    mode=mode.value)
        return result

    # ------------------------------------------------------------------
    # Background operations
    # ------------------------------------------------------------------

    @property
    def job_manager(self) -> JobManager:
        if self._job_manager is None:
            self._job_manager = get_job_manager()
        return self._job_manager

    def load_async(self, languages: Optional[Iterable[str]] = None,
                   callback: Optional[Callable] = None) -> str:
        """Run load() on a worker thread and return the job id."""
        languages = list(languages) if languages is not None else None
        return self.job_manager.run_in_background(
            'load', self.load, languages, callback=callback,
            metadata={'languages': languages})

    def export_async(self, path: Optional[Union[str, Path]] = None,
                     callback: Optional[Callable] = None) -> str:
        """Run export_custom_words() on a worker thread and return the job id."""
        return self.job_manager.run_in_background(
            'export', self.export_custom_words, path, callback=callback)

    def import_async(self, archive: ArchiveSource,
                     mode: Union[ImportMode, str] = ImportMode.MERGE,
                     callback: Optional[Callable] = None) -> str:
        """
        Run import_custom_words() on a worker thread and return the job id.

        An unknown mode is reported by the job result, like the sync call.
        """
        mode_name = mode.value if isinstance(mode, ImportMode) else str(mode)
        return self.job_manager.run_in_background(
            'import', self.import_custom_words, archive, mode, callback=callback,
            metadata={'mode': mode_name})

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        """Get detailed status of the store."""
        languages = self._languages
        return {
            'available': self.is_available,
            'error': self._error,
            'dict_dir': str(self.dict_dir),
            'custom_dir': str(self.custom_dir),
            'languages': {
                code: {
                    'base_loaded': lang.base_loaded,
                    'word_count': len(lang.base),
                    'custom_word_count': len(lang.custom),
                    'contraction_count': len(lang.contractions),
                }
                for code, lang in languages.items()
            },
            'prefix_index_built': self._index.is_built,
        }
