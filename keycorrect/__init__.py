"""
KeyCorrect Predictive Text Correction
=====================================
Version: 1.0.0

Keystroke-level spelling correction for a keyboard:
- dictionary: Per-language word sets, custom overlays, prefix index
- spelling: Keyboard-aware edit distance and suggestion ranking
- session: Word buffer, auto-apply and one-step undo
- backup: Portable archive of custom words
- cli: Custom word management from the command line

Uses lazy loading - modules only import when accessed.
"""

__version__ = "1.0.0"
__author__ = "KeyCorrect"

_MODULES = {
    'dictionary': 'keycorrect.dictionary',
    'spelling': 'keycorrect.spelling',
    'session': 'keycorrect.session',
    'backup': 'keycorrect.backup',
    'job_manager': 'keycorrect.job_manager',
}

_loaded_modules = {}


def __getattr__(name):
    """Lazy load submodules on first access."""
    if name in _MODULES:
        if name not in _loaded_modules:
            import importlib
            _loaded_modules[name] = importlib.import_module(_MODULES[name])
        return _loaded_modules[name]
    raise AttributeError(f"module 'keycorrect' has no attribute '{name}'")


def __dir__():
    """List available submodules."""
    return list(_MODULES.keys()) + ['config', 'base', 'get_status']


def get_status(store=None):
    """
    Get status of the correction core.

    Args:
        store: WordStore to report on; omitted means configuration only
    """
    from .config import get_config
    from dataclasses import asdict

    status = {
        'version': __version__,
        'config': asdict(get_config()),
        'store': None,
    }
    if store is not None:
        status['store'] = store.get_status()
    return status
