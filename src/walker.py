"""Recursive collection of feed entries from a post directory tree."""
import asyncio
import logging
import os
import stat

from src.feed_items import FeedError, FilesystemError, InvalidArgument, create_feed_item, is_feed_file
from src.models import WalkError, WalkResult

logger = logging.getLogger(__name__)


async def find_feed_items(name: str, dirpath: str, ancestors: frozenset = frozenset()) -> WalkResult:
    """Collect feed entries for ``name`` inside ``dirpath``, recursing into directories.

    Children of a directory are walked concurrently and their results are
    concatenated in (sorted) listing order. Failures below this point are
    logged and recorded in the result instead of being raised; a file or
    subtree that fails simply contributes no entries.

    Args:
        name: Name of the file or directory to process
        dirpath: Absolute path of the directory containing ``name``
        ancestors: (st_dev, st_ino) of the directories above this one, used
            to stop at symlinks that loop back into the tree

    Raises:
        InvalidArgument: the joined path is not absolute
    """
    try:
        path = os.path.join(os.fspath(dirpath), os.fspath(name))
    except TypeError as e:
        raise InvalidArgument(f"find_feed_items(): invalid arg type: {e}") from e
    if not isinstance(path, str) or not os.path.isabs(path):
        raise InvalidArgument(f"find_feed_items(): was passed '{path}': only absolute paths allowed")

    try:
        st = await asyncio.to_thread(os.stat, path)
    except OSError as e:
        logger.error(f"find_feed_items(): error calling stat on '{path}': {e}")
        return _failed(path, FilesystemError(f"stat failed for '{path}': {e}"))

    if stat.S_ISDIR(st.st_mode):
        key = (st.st_dev, st.st_ino)
        if key in ancestors:
            logger.warning(f"Not following {path}: it loops back to a parent directory")
            return WalkResult()
        return await _walk_directory(path, ancestors | {key})

    result = WalkResult()
    try:
        if await is_feed_file(path):
            result.entries.append(await create_feed_item(path))
    except FeedError as e:
        logger.error(f"Skipping {path}: {e}")
        result.errors.append(WalkError(path=path, error=e))
    return result


async def _walk_directory(path: str, ancestors: frozenset) -> WalkResult:
    try:
        children = await asyncio.to_thread(os.listdir, path)
    except OSError as e:
        logger.error(f"find_feed_items(): error reading directory '{path}': {e}")
        return _failed(path, FilesystemError(f"listdir failed for '{path}': {e}"))

    child_results = await asyncio.gather(
        *(find_feed_items(child, path, ancestors) for child in sorted(children))
    )

    result = WalkResult()
    for child_result in child_results:
        result.extend(child_result)
    logger.debug(f"{path}: {len(result.entries)} entries, {len(result.errors)} errors")
    return result


def _failed(path: str, error: Exception) -> WalkResult:
    return WalkResult(errors=[WalkError(path=path, error=error)])
