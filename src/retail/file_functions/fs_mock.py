import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import (
    Union,
    Callable,
    IO,
    ContextManager,
    Iterator,
    Protocol,
    Optional,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class OpenFileCallable(Protocol):
    def __call__(
        self, path: PathLike, mode: str, *, encoding: Optional[str] = None
    ) -> ContextManager[IO]: ...


def _default_os_stat(path: PathLike) -> os.stat_result:
    return os.stat(str(path))


def _default_exists(path: PathLike) -> bool:
    return os.path.exists(str(path))


def _default_open(
    path: PathLike, mode: str, *, encoding: Optional[str] = None
) -> ContextManager[IO]:
    """
    Default implementation for opening a file.
    Matches the built-in open() signature for mode and encoding.
    """
    return open(str(path), mode, encoding=encoding)


def _default_isdir(path: PathLike) -> bool:
    return os.path.isdir(str(path))


def _default_isfile(path: PathLike) -> bool:
    return os.path.isfile(str(path))


def _default_chmod(path: PathLike, mode: int) -> None:
    try:
        os.chmod(str(path), mode)
    except Exception as e:
        logger.debug("FS.chmod failed (%s, %o): %s", path, mode, e)
        raise


def _default_replace(src: PathLike, dst: PathLike) -> None:
    os.replace(str(src), str(dst))


def _default_unlink(path: PathLike) -> None:
    os.unlink(str(path))


def _default_scandir(path: PathLike) -> ContextManager[Iterator[os.DirEntry]]:
    return os.scandir(str(path))


@dataclass(frozen=True)
class FS:
    """
    Thin, injectable wrapper over the filesystem calls retail performs.

    Every field defaults to the real os/builtin call; tests replace single
    fields (or the whole object with a spec'd mock) to simulate races,
    permission problems and rotated directories.
    """

    stat: Callable[[PathLike], os.stat_result] = field(default=_default_os_stat)
    exists: Callable[[PathLike], bool] = field(default=_default_exists)
    open: OpenFileCallable = field(default=_default_open)
    is_dir: Callable[[PathLike], bool] = field(default=_default_isdir)
    is_file: Callable[[PathLike], bool] = field(default=_default_isfile)
    chmod: Callable[[PathLike, int], None] = field(default=_default_chmod)
    scandir: Callable[[PathLike], ContextManager[Iterator[os.DirEntry]]] = field(
        default=_default_scandir
    )
    replace: Callable[[PathLike, PathLike], None] = field(default=_default_replace)
    unlink: Callable[[PathLike], None] = field(default=_default_unlink)
