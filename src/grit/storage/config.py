"""Repository configuration file.

The ``.git/config`` file is INI-formatted. Only the ``[core]`` section is
consumed here: ``repositoryformatversion``, ``bare`` and ``filemode``.
"""

import configparser
import io
from pathlib import Path
from typing import Optional

from grit.constants import REPOSITORY_FORMAT_VERSION
from grit.errors import InvalidRepositoryError, MissingConfigError

CORE_SECTION = "core"


class RepositoryConfig:
    """INI configuration of a repository.

    Attributes:
        parser: Underlying ConfigParser holding the values
    """

    def __init__(self, parser: Optional[configparser.ConfigParser] = None) -> None:
        self.parser = parser if parser is not None else self._new_parser()

    @staticmethod
    def _new_parser() -> configparser.ConfigParser:
        # Git configs may repeat keys and contain '%' in values
        return configparser.ConfigParser(interpolation=None, strict=False)

    @classmethod
    def default(cls) -> "RepositoryConfig":
        """Build the configuration written by repository initialization."""
        config = cls()
        config.parser[CORE_SECTION] = {
            "bare": "false",
            "repositoryformatversion": str(REPOSITORY_FORMAT_VERSION),
            "filemode": "false",
        }
        return config

    @classmethod
    def load(cls, path: Path) -> "RepositoryConfig":
        """Load configuration from ``path``.

        Args:
            path: Path to the config file inside the git directory

        Raises:
            MissingConfigError: If the file does not exist
            InvalidRepositoryError: If the file cannot be read or parsed
        """
        path = Path(path)
        gitdir = path.parent

        if not path.exists():
            raise MissingConfigError(gitdir)
        if not path.is_file():
            raise InvalidRepositoryError(gitdir, f"{path} is not a regular file")

        config = cls()
        try:
            config.parser.read_string(path.read_text(encoding="utf-8"), source=str(path))
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidRepositoryError(gitdir, f"cannot read {path}: {e}") from e
        except configparser.Error as e:
            raise InvalidRepositoryError(gitdir, f"cannot parse {path}: {e}") from e
        return config

    def write(self, path: Path) -> None:
        """Write the configuration to ``path``."""
        buffer = io.StringIO()
        self.parser.write(buffer)
        Path(path).write_bytes(buffer.getvalue().encode("utf-8"))

    def get(
        self,
        section: str,
        option: str,
        fallback: Optional[str] = None,
    ) -> Optional[str]:
        return self.parser.get(section, option, fallback=fallback)

    @property
    def format_version(self) -> Optional[int]:
        """``core.repositoryformatversion`` as an int, or None if absent or invalid."""
        raw = self.get(CORE_SECTION, "repositoryformatversion")
        if raw is None:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            return None

    @property
    def bare(self) -> bool:
        return self._get_bool("bare")

    @property
    def filemode(self) -> bool:
        return self._get_bool("filemode")

    def _get_bool(self, option: str) -> bool:
        try:
            return self.parser.getboolean(CORE_SECTION, option, fallback=False)
        except ValueError:
            return False
