import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from userhub.errors import FilesystemError
from userhub.services.resource_service import (
    DEFAULT_DIRECTORIES,
    ResourceDirectory,
    ResourceProvisioner,
)


class ResourceProvisionerTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.provisioner = ResourceProvisioner(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_creates_missing_directories_with_parents(self):
        created = self.provisioner.ensure([ResourceDirectory("media/avatars/large")])

        self.assertEqual(created, [self.root / "media/avatars/large"])
        self.assertTrue((self.root / "media/avatars/large").is_dir())

    def test_second_call_is_a_no_op(self):
        self.provisioner.ensure(DEFAULT_DIRECTORIES)

        self.assertEqual(self.provisioner.ensure(DEFAULT_DIRECTORIES), [])
        self.assertEqual(
            sorted(p.name for p in self.root.iterdir()), ["files", "uploads"]
        )

    def test_existing_directory_is_left_alone(self):
        (self.root / "files").mkdir()
        (self.root / "files" / "keep.txt").write_text("kept")

        created = self.provisioner.ensure(DEFAULT_DIRECTORIES)

        self.assertEqual(created, [self.root / "uploads"])
        self.assertEqual((self.root / "files" / "keep.txt").read_text(), "kept")

    @patch.object(Path, "mkdir", side_effect=PermissionError("read-only file system"))
    def test_required_directory_failure_raises(self, _mkdir):
        with self.assertRaises(FilesystemError):
            self.provisioner.ensure([ResourceDirectory("files")])

    @patch.object(Path, "mkdir", side_effect=PermissionError("read-only file system"))
    def test_optional_directory_failure_is_skipped(self, _mkdir):
        created = self.provisioner.ensure([ResourceDirectory("cache", required=False)])
        self.assertEqual(created, [])


if __name__ == "__main__":
    unittest.main()
