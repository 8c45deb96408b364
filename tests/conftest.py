"""
Shared fixtures for KeyCorrect tests
====================================
Small dictionaries written under tmp_path so every test owns its files.
"""

import pytest
from pathlib import Path

from keycorrect.config import KeyCorrectConfig, reset_config
from keycorrect.dictionary.store import WordStore
from keycorrect.job_manager import JobManager


EN_WORDS = [
    "beautiful", "because", "card", "cars", "cat", "hello", "help",
    "main", "the", "there", "they", "word", "world", "would",
]

ID_WORDS = ["kamu", "makan", "mau", "rumah", "saya", "selamat"]

EN_CONTRACTIONS = ["dont:don't", "im:I'm", "isnt:isn't"]


def write_words(path: Path, words) -> Path:
    path.write_text("\n".join(words) + "\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the global config away from the developer's files and env."""
    monkeypatch.setenv("KEYCORRECT_CONFIG_FILE", str(tmp_path / "keycorrect_config.json"))
    for var in ("KEYCORRECT_DICT_DIR", "KEYCORRECT_CUSTOM_DIR", "KEYCORRECT_LANGUAGES",
                "KEYCORRECT_MAX_SUGGESTIONS", "KEYCORRECT_ENABLED"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config() -> KeyCorrectConfig:
    """Default configuration."""
    return KeyCorrectConfig()


@pytest.fixture
def dict_dir(tmp_path) -> Path:
    """Directory with en/id dictionaries and English contractions."""
    directory = tmp_path / "dictionaries"
    directory.mkdir()
    write_words(directory / "en.txt", EN_WORDS)
    write_words(directory / "id.txt", ID_WORDS)
    write_words(directory / "en_contractions.txt", EN_CONTRACTIONS)
    return directory


@pytest.fixture
def custom_dir(tmp_path) -> Path:
    """Empty directory for custom overlays."""
    return tmp_path / "custom"


@pytest.fixture
def job_manager() -> JobManager:
    return JobManager()


@pytest.fixture
def store(dict_dir, custom_dir, config, job_manager) -> WordStore:
    """WordStore loaded with en and id."""
    word_store = WordStore(dict_dir=dict_dir, custom_dir=custom_dir,
                           config=config, job_manager=job_manager)
    report = word_store.load(["en", "id"])
    assert report.success
    return word_store
