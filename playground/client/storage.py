"""On-disk token persistence for the Python client."""

import json
import shutil
import tempfile
from pathlib import Path
from typing_extensions import override

from playground.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TOKEN_FILE = Path.home() / ".playground" / "tokens.json"


def _atomic_write(path: Path, payload: dict) -> None:
    """Atomically write JSON to the target path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w", dir=str(path.parent), delete=False, encoding="utf-8"
    ) as tf:
        json.dump(payload, tf, indent=2)
        temp_path = Path(tf.name)
    try:
        shutil.move(str(temp_path), str(path))
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


class TokenStorage:
    """Access/refresh token pair kept in a JSON file."""

    def __init__(self, path: Path | str = DEFAULT_TOKEN_FILE):
        self.path = Path(path)

    def load(self) -> tuple[str | None, str | None]:
        """Return ``(access_token, refresh_token)``; missing or corrupt files yield Nones."""
        if not self.path.exists():
            return None, None
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("token_file_unreadable", path=str(self.path), error=str(e))
            return None, None
        if not isinstance(raw, dict):
            return None, None
        return raw.get("accessToken"), raw.get("refreshToken")

    def save(self, access_token: str, refresh_token: str) -> None:
        _atomic_write(self.path, {"accessToken": access_token, "refreshToken": refresh_token})

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def has_tokens(self) -> bool:
        access, refresh = self.load()
        return bool(access and refresh)


class MemoryTokenStorage(TokenStorage):
    """Token storage that never touches disk."""

    def __init__(self):
        self._tokens: tuple[str | None, str | None] = (None, None)

    @override
    def load(self) -> tuple[str | None, str | None]:
        return self._tokens

    @override
    def save(self, access_token: str, refresh_token: str) -> None:
        self._tokens = (access_token, refresh_token)

    @override
    def clear(self) -> None:
        self._tokens = (None, None)
