"""JSON-lines audit log of asked questions."""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class HistoryRecord:
    """One asked question with the settings and files it was sent with."""

    time: str
    endpoint: str
    profile: str
    model: str
    temperature: float
    max_tokens: int
    stream: bool
    system_prompt: str
    prompt: str
    ctx: dict[str, str] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)
    file_hashes: list[str] = field(default_factory=list)
    cwd: str = ""
    response_preview: str = ""
    chunked: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryRecord":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


def append(path: Path | str, record: HistoryRecord) -> None:
    """Append record as one JSON line; failures are logged, not raised."""
    path = Path(path).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(record), ensure_ascii=False) + "\n")
    except OSError as e:
        logger.warning(f"Could not write history to {path}: {e}")


def read_all(path: Path | str) -> list[HistoryRecord]:
    """Read every record; malformed lines are skipped.

    Raises:
        OSError: the file exists but cannot be read
    """
    path = Path(path).expanduser()
    if not path.exists():
        return []

    records = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue
            try:
                records.append(HistoryRecord.from_dict(data))
            except TypeError:
                continue
    return records
