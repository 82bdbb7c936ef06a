import unittest

from application.use_cases.ingest_images import ingest_images
from domain.entities import ImageRecord
from domain.errors import InvalidImageRecord
from infrastructure.repositories.in_memory_image_repository import InMemoryImageRepository


class TestIngestImages(unittest.TestCase):
    def setUp(self) -> None:
        self.repository = InMemoryImageRepository()

    def test_normalizes_and_stores(self):
        stored = ingest_images(
            [ImageRecord(id=0, file_name="beach.jpg", tags="Sunset; BEACH sunset", file_format="jpeg")],
            repository=self.repository,
        )

        self.assertEqual(len(stored), 1)
        image = self.repository.get(stored[0].id)
        self.assertEqual(image.tags, "sunset, beach")
        self.assertEqual(image.file_format, "JPEG")
        self.assertIsNotNone(image.created_at)

    def test_missing_tags_stay_missing(self):
        stored = ingest_images([ImageRecord(id=5, file_name="plain.png")], repository=self.repository)

        self.assertIsNone(stored[0].tags)
        self.assertEqual(self.repository.get(5).file_name, "plain.png")

    def test_rejects_too_many_tags(self):
        tags = ", ".join(f"tag{i}" for i in range(25))
        with self.assertRaises(InvalidImageRecord):
            ingest_images([ImageRecord(id=0, tags=tags)], repository=self.repository)
        self.assertEqual(self.repository.list(), [])

    def test_invalid_record_stores_nothing_from_the_batch(self):
        batch = [
            ImageRecord(id=0, file_name="ok.jpg", tags="ok"),
            ImageRecord(id=0, file_name="bad.jpg", tags=",".join(f"t{i}" for i in range(30))),
        ]

        with self.assertRaises(InvalidImageRecord):
            ingest_images(batch, repository=self.repository)

        self.assertEqual(self.repository.list(), [])

    def test_caller_records_are_not_mutated(self):
        original = ImageRecord(id=0, file_name="a.jpg", tags="Sunset; BEACH", file_format="jpeg")

        stored = ingest_images([original], repository=self.repository)

        self.assertEqual(original.tags, "Sunset; BEACH")
        self.assertEqual(original.file_format, "jpeg")
        self.assertIsNone(original.created_at)
        self.assertEqual(original.id, 0)
        self.assertIsNot(stored[0], original)
        self.assertEqual(stored[0].tags, "sunset, beach")

    def test_rejects_long_ai_tags(self):
        with self.assertRaises(ValueError):
            ingest_images([ImageRecord(id=0, ai_generated_tags="x" * 80)], repository=self.repository)


if __name__ == "__main__":
    unittest.main()
