import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from userhub.errors import FilesystemError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceDirectory:
    path: str
    required: bool = True


DEFAULT_DIRECTORIES = (ResourceDirectory("files"), ResourceDirectory("uploads"))


class ResourceProvisioner:
    """
    Creates the local directories the service writes to.

    Only valid where the filesystem is writable; callers check the topology.
    """

    def __init__(self, root: str = "."):
        self.root = Path(root)

    def resolve(self, directory: ResourceDirectory) -> Path:
        return self.root / directory.path

    def ensure(self, directories: Iterable[ResourceDirectory]) -> List[Path]:
        """Create any missing directory and return the ones created."""
        created = []
        for directory in directories:
            target = self.resolve(directory)
            if target.is_dir():
                continue
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                if directory.required:
                    raise FilesystemError(f"Could not create directory {target}: {e}") from e
                logger.warning(f"Skipping optional directory {target}: {e}")
                continue
            logger.info(f"Created directory {target}")
            created.append(target)
        return created
