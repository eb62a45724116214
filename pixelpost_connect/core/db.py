import sqlite3
from pathlib import Path
import threading
from typing import Dict, Iterable, List, Optional, Union
from ..utils.crypto import FernetEncryption, Obfuscation
from ..utils.logger import get_logger
from ..exceptions import StorageError

logger = get_logger(__name__)

Codec = Union[FernetEncryption, Obfuscation]

class SqliteSecureStore:
    """Thread-safe SQLite key/value store whose values pass through a codec before hitting disk."""

    def __init__(self, db_path: str, codec: Codec):
        self.db_path = Path(db_path)
        self.codec = codec
        self._lock = threading.Lock()

        if not codec.is_secure:
            logger.warning(
                "Secure storage is using the obfuscated fallback tier; "
                "tokens are NOT encrypted at rest"
            )

        try:
            if str(db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._init_db()
        except sqlite3.Error as e:
            logger.error(f"Error initializing secure store at {db_path}: {e}")
            raise StorageError(f"Cannot open secure store: {e}") from e

    @property
    def is_secure(self) -> bool:
        return self.codec.is_secure

    def _init_db(self):
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS secure_items (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            self.conn.commit()
            logger.debug(f"Secure store ready at {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        """Return the decoded value or None; raises StorageError when the row cannot be read."""
        try:
            with self._lock:
                cursor = self.conn.cursor()
                cursor.execute('SELECT value FROM secure_items WHERE key = ?', (key,))
                row = cursor.fetchone()
            if not row:
                return None
            return self.codec.decrypt(row[0])
        except Exception as e:
            logger.error(f"Error reading secure item {key}: {str(e)}")
            raise StorageError(f"Cannot read {key}") from e

    def set(self, key: str, value: str) -> None:
        self.write_batch({key: value}, [])

    def delete(self, key: str) -> None:
        self.write_batch({}, [key])

    def write_batch(self, set_items: Dict[str, str], delete_keys: Iterable[str]) -> None:
        """Apply every set and delete in one transaction; nothing is written if any step fails."""
        try:
            encoded = {key: self.codec.encrypt(value) for key, value in set_items.items()}
            with self._lock:
                with self.conn:
                    for key, value in encoded.items():
                        self.conn.execute('''
                            INSERT INTO secure_items (key, value, updated_at)
                            VALUES (?, ?, CURRENT_TIMESTAMP)
                            ON CONFLICT(key) DO UPDATE SET
                                value = excluded.value,
                                updated_at = CURRENT_TIMESTAMP
                        ''', (key, value))
                    for key in delete_keys:
                        self.conn.execute('DELETE FROM secure_items WHERE key = ?', (key,))
        except Exception as e:
            logger.error(f"Error writing secure items: {str(e)}")
            raise StorageError("Cannot write secure items") from e

    def update(self, key: str, value: str) -> bool:
        """Overwrite an existing row only; returns False when the key is not stored."""
        try:
            encoded = self.codec.encrypt(value)
            with self._lock:
                with self.conn:
                    cursor = self.conn.execute(
                        'UPDATE secure_items SET value = ?, updated_at = CURRENT_TIMESTAMP WHERE key = ?',
                        (encoded, key)
                    )
            return cursor.rowcount > 0
        except Exception as e:
            logger.error(f"Error updating secure item {key}: {str(e)}")
            raise StorageError(f"Cannot update {key}") from e

    def keys(self) -> List[str]:
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute('SELECT key FROM secure_items ORDER BY key')
            return [row[0] for row in cursor.fetchall()]

    def close(self) -> None:
        with self._lock:
            self.conn.close()
