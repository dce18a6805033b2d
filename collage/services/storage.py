from pathlib import Path
from collage.config import settings


class LocalStorage:
    """Image payloads on disk, one file per image keyed by its id."""

    def __init__(self, base: str | Path):
        self.base = Path(base)
        self.base.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        path = (self.base / key).resolve()
        if path.parent != self.base.resolve():
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def save(self, key: str, data: bytes) -> str:
        path = self.path_for(key)
        with open(path, "wb") as f:
            f.write(data)
        return key

    def read(self, key: str) -> bytes:
        return self.path_for(key).read_bytes()

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.exists():
            return False
        path.unlink()
        return True


storage = LocalStorage(settings.STORAGE_DIR)
