"""
Custom Word Backup Codec
========================
Lossless serialization of custom word overlays to a portable archive.

Archive layout (ZIP, deflate):
    manifest.json         {"version", "timestamp", "appVersion",
                           "languages": [{"languageCode", "wordCount", "words"}]}
    <lang>_custom.txt     one word per line, mirrors the manifest entry

Words and languages are sorted so the same overlays always encode to
the same manifest. Decoding rejects archives without a manifest and
archives from a newer format version outright.
"""

import io
import json
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from . import __version__
from .config_logging import get_logger, BackupFormatError, IncompatibleBackupError

logger = get_logger(__name__)

BACKUP_FORMAT_VERSION = 1
MANIFEST_NAME = "manifest.json"
CUSTOM_FILE_SUFFIX = "_custom.txt"

ArchiveSource = Union[bytes, str, Path]


@dataclass
class LanguageBackup:
    """Custom words of one language inside a backup."""
    language_code: str
    words: List[str] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.words)

    def to_dict(self) -> dict:
        return {
            'languageCode': self.language_code,
            'wordCount': self.word_count,
            'words': list(self.words),
        }


@dataclass
class BackupManifest:
    """Contents of manifest.json."""
    version: int
    timestamp: int  # milliseconds since the epoch
    app_version: str
    languages: List[LanguageBackup] = field(default_factory=list)

    @property
    def total_words(self) -> int:
        return sum(lang.word_count for lang in self.languages)

    def words_by_language(self) -> Dict[str, List[str]]:
        return {lang.language_code: list(lang.words) for lang in self.languages}

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'timestamp': self.timestamp,
            'appVersion': self.app_version,
            'languages': [lang.to_dict() for lang in self.languages],
        }


class BackupCodec:
    """Encode and decode custom word backups."""

    def __init__(self, format_version: int = BACKUP_FORMAT_VERSION,
                 app_version: str = __version__):
        self.format_version = format_version
        self.app_version = app_version

    def build_manifest(self, words_by_language: Mapping[str, Iterable[str]],
                       timestamp: Optional[int] = None) -> BackupManifest:
        """Manifest for every language with a non-empty overlay."""
        languages = []
        for code in sorted(words_by_language):
            words = sorted(set(words_by_language[code]))
            if words:
                languages.append(LanguageBackup(language_code=code, words=words))

        return BackupManifest(
            version=self.format_version,
            timestamp=int(time.time() * 1000) if timestamp is None else timestamp,
            app_version=self.app_version,
            languages=languages,
        )

    def encode(self, manifest: BackupManifest) -> bytes:
        """
        Write the manifest and one text file per language into a ZIP.

        An empty manifest is refused; callers report that as
        "nothing to export" instead of producing an empty archive.
        """
        if manifest.total_words == 0:
            raise BackupFormatError("Refusing to encode a backup without words")

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(MANIFEST_NAME, json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False))
            for lang in manifest.languages:
                content = "\n".join(lang.words) + "\n"
                zf.writestr(f"{lang.language_code}{CUSTOM_FILE_SUFFIX}", content.encode('utf-8'))

        logger.debug(f"Encoded backup: {manifest.total_words} words, {len(manifest.languages)} languages",
                     word_count=manifest.total_words)
        return buffer.getvalue()

    def decode(self, archive: ArchiveSource) -> BackupManifest:
        """
        Read a backup archive.

        Args:
            archive: Archive bytes or a path to the archive file

        Raises:
            BackupFormatError: unreadable archive, missing or malformed manifest
            IncompatibleBackupError: manifest version above the supported version
        """
        try:
            source = io.BytesIO(archive) if isinstance(archive, (bytes, bytearray)) else archive
            with zipfile.ZipFile(source, 'r') as zf:
                names = set(zf.namelist())
                if MANIFEST_NAME not in names:
                    raise BackupFormatError("Backup has no manifest", missing=MANIFEST_NAME)

                data = json.loads(zf.read(MANIFEST_NAME).decode('utf-8'))
                manifest = self._parse_manifest(data)

                # Entries without an inline word list fall back to the text file
                for lang in manifest.languages:
                    text_name = f"{lang.language_code}{CUSTOM_FILE_SUFFIX}"
                    if not lang.words and text_name in names:
                        text = zf.read(text_name).decode('utf-8')
                        lang.words = [line.strip() for line in text.splitlines() if line.strip()]
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise BackupFormatError(f"Not a backup archive: {e}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BackupFormatError(f"Manifest is not valid JSON: {e}")
        except OSError as e:
            raise BackupFormatError(f"Could not read backup: {e}")

        return manifest

    def _parse_manifest(self, data) -> BackupManifest:
        if not isinstance(data, dict) or 'version' not in data:
            raise BackupFormatError("Manifest has no version")

        try:
            version = int(data['version'])
        except (TypeError, ValueError):
            raise BackupFormatError(f"Manifest version is not a number: {data['version']!r}")

        if version > self.format_version:
            raise IncompatibleBackupError(version, self.format_version)

        raw_languages = data.get('languages', [])
        if not isinstance(raw_languages, list):
            raise BackupFormatError("Manifest languages must be a list")

        languages = []
        for entry in raw_languages:
            if not isinstance(entry, dict) or not isinstance(entry.get('languageCode'), str):
                raise BackupFormatError("Manifest language entry has no languageCode")
            words = entry.get('words') or []
            if not isinstance(words, list):
                raise BackupFormatError(f"Word list for {entry['languageCode']} is not a list")
            # Non-string entries are kept and rejected later by word validation
            languages.append(LanguageBackup(
                language_code=entry['languageCode'],
                words=[w if isinstance(w, str) else "" for w in words],
            ))

        try:
            timestamp = int(data.get('timestamp', 0))
        except (TypeError, ValueError):
            timestamp = 0

        return BackupManifest(
            version=version,
            timestamp=timestamp,
            app_version=str(data.get('appVersion', '')),
            languages=languages,
        )

    def write(self, manifest: BackupManifest, path: Union[str, Path]) -> Path:
        """Encode and write the archive to `path`."""
        path = Path(path)
        path.write_bytes(self.encode(manifest))
        return path
