# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_HINT = "DOCXTRANSLATE_ENV_FILE"


def parse_env_line(raw: str) -> tuple[str, str] | None:
    """Parse one ``KEY=value`` line; comments, blanks and lines without '=' yield None."""
    line = raw.strip()
    if line.lower().startswith("export "):
        line = line[7:].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = (part.strip() for part in line.split("=", 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return key, value[1:-1]
    # inline comments only count outside quotes
    return key, value.split(" #", 1)[0].rstrip()


def load_env_file(path: str | Path | None = None, *, override: bool = False) -> tuple[str | None, list[str]]:
    """
    Load variables from a .env file into os.environ.

    Without ``path`` the file named by $DOCXTRANSLATE_ENV_FILE is used, else
    ./.env. Existing variables win unless ``override`` is set.
    Returns (path_used, loaded_keys); (None, []) when there is no file.
    """
    if path is None:
        path = os.getenv(ENV_FILE_HINT) or Path.cwd() / ".env"
    candidate = Path(path)
    if not candidate.is_file():
        return None, []

    loaded: list[str] = []
    for raw in candidate.read_text(encoding="utf-8").splitlines():
        pair = parse_env_line(raw)
        if pair is None:
            continue
        key, value = pair
        if override or key not in os.environ:
            os.environ[key] = value
            loaded.append(key)
    return str(candidate), loaded
