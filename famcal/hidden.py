import hashlib
from pathlib import Path

import yaml
from loguru import logger

import famcal.settings as settings


def summary_hash(summary: str) -> str:
    return hashlib.sha1(summary.strip().lower().encode("utf-8")).hexdigest()


def hidden_key(start_ts: int, summary: str) -> str:
    """Identify one occurrence by its start and (case-folded) title."""
    return f"{int(start_ts)}#{summary_hash(summary)}"


def load_hidden(path: Path | None = None) -> dict[str, set[str]]:
    """
    Load hidden occurrence keys per calendar name.
    Return {} if the file is missing or invalid.
    """
    path = Path(path or settings.HIDDEN_FILE)
    if not (path.exists() and path.is_file()):
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.warning("Failed to parse hidden events file {}: {}", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    hidden = {}
    for name, keys in data.items():
        if isinstance(keys, list):
            hidden[str(name)] = {str(k) for k in keys if isinstance(k, str) and "#" in k}
    return hidden


def save_hidden(hidden: dict[str, set[str]], path: Path | None = None) -> None:
    """Write the store, dropping calendars with nothing hidden."""
    path = Path(path or settings.HIDDEN_FILE)
    to_write = {name: sorted(keys) for name, keys in hidden.items() if keys}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(to_write), encoding="utf-8")
    logger.debug("Saved hidden events for {} calendars to {}", len(to_write), path)


def hide_event(calendar: str, start_ts: int, summary: str, path: Path | None = None) -> dict[str, set[str]]:
    hidden = load_hidden(path)
    hidden.setdefault(calendar, set()).add(hidden_key(start_ts, summary))
    save_hidden(hidden, path)
    return hidden


def unhide_event(calendar: str, start_ts: int, summary: str, path: Path | None = None) -> dict[str, set[str]]:
    hidden = load_hidden(path)
    hidden.get(calendar, set()).discard(hidden_key(start_ts, summary))
    save_hidden(hidden, path)
    return hidden
