"""
Flat-file JSON store for the whole site document.

Every operation reads the full file and writes it back in full. Writes go to
a temporary file that is renamed over the original, and read-modify-write
sequences are serialized by a per-store lock. The lock does not protect
against a second process writing the same file.
"""
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from config import get_settings
from errors import StoreIOError, StoreParseError
from schemas import Admin, Document
from security import hash_password

logger = logging.getLogger("studio.store")

DEFAULT_PRICES = {
    "landing": {"price": 50000, "duration": "5-7 дней"},
    "corporate": {"price": 150000, "duration": "14-21 день"},
    "ecommerce": {"price": 250000, "duration": "30-45 дней"},
}

DEFAULT_PORTFOLIO = [
    {
        "id": 1,
        "title": "Интернет-магазин одежды",
        "description": "Полнофункциональный магазин с каталогом, фильтрами и онлайн-оплатой",
        "category": "E-commerce",
        "tags": ["React", "Node.js", "MongoDB"],
        "gradient": "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
        "url": "",
    },
    {
        "id": 2,
        "title": "Лендинг для стартапа",
        "description": "Яркий продающий лендинг с анимациями и интеграцией CRM",
        "category": "Landing",
        "tags": ["HTML/CSS", "JavaScript", "GSAP"],
        "gradient": "linear-gradient(135deg, #f093fb 0%, #f5576c 100%)",
        "url": "",
    },
    {
        "id": 3,
        "title": "Корпоративный сайт",
        "description": "Представительский сайт компании с блогом и формами обратной связи",
        "category": "Corporate",
        "tags": ["WordPress", "PHP", "MySQL"],
        "gradient": "linear-gradient(135deg, #4facfe 0%, #00f2fe 100%)",
        "url": "",
    },
]


def build_seed_document(username: Optional[str] = None, password: Optional[str] = None) -> dict:
    """Default document with a freshly salted admin credential."""
    settings = get_settings()
    hashed = hash_password(password or settings.DEFAULT_ADMIN_PASSWORD)
    admin = Admin(
        username=username or settings.DEFAULT_ADMIN_USERNAME,
        password_hash=hashed.hash,
        password_salt=hashed.salt,
    )
    return Document(
        admin=admin,
        prices=DEFAULT_PRICES,
        portfolio=DEFAULT_PORTFOLIO,
        orders=[],
    ).to_doc()


class JsonStore:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.RLock()

    def load(self) -> dict:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreIOError(f"cannot read {self.path}: {exc}") from exc
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreParseError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(doc, dict):
            raise StoreParseError(f"{self.path} does not hold a JSON object")
        return doc

    def save(self, doc: dict) -> None:
        payload = json.dumps(doc, ensure_ascii=False, indent=2)
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreIOError(f"cannot write {self.path}: {exc}") from exc

    def read(self) -> dict:
        with self._lock:
            return self.load()

    @contextmanager
    def transaction(self) -> Iterator[dict]:
        """
        Load the document, hand it to the caller and save it on clean exit.

        If the block raises, nothing is written.
        """
        with self._lock:
            doc = self.load()
            yield doc
            self.save(doc)

    def initialize_if_absent(self) -> bool:
        with self._lock:
            if self.path.exists():
                return False
            self.save(build_seed_document())
            logger.info(f"Created data file with default content: {self.path}")
            return True

    def reset(self) -> dict:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise StoreIOError(f"cannot remove {self.path}: {exc}") from exc
            self.initialize_if_absent()
            return self.load()


_store: Optional[JsonStore] = None
_store_lock = threading.Lock()


def get_store() -> JsonStore:
    """Process-wide store for the configured DATA_FILE."""
    global _store
    with _store_lock:
        if _store is None:
            _store = JsonStore(get_settings().DATA_FILE)
        return _store


def reset_store_for_test() -> None:
    global _store
    with _store_lock:
        _store = None
