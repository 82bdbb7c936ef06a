from infrastructure.repositories.in_memory_image_repository import InMemoryImageRepository
from infrastructure.repositories.sqlite_image_repository import SqliteImageRepository

__all__ = [
    "InMemoryImageRepository",
    "SqliteImageRepository",
]
