"""
Publishes backups under random token directories inside the publish root.

Layout: <publish_root>/<token>/<original file name>. The reverse proxy serves
the publish root as-is, so a token directory existing is what makes a link
live, and removing it revokes the link.
"""

import errno
import logging
import os
import secrets
import shutil
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
from urllib.parse import quote

from common.constants import TOKEN_ALPHABET, TOKEN_LENGTH, TOKEN_MAX_ATTEMPTS
from common.logging_config import mask_token
from common.types import BackupFile, Publication
from courier.exceptions import (
    InvalidTokenError,
    PublishError,
    SourceVanishedError,
    TokenSpaceExhaustedError,
)

logger = logging.getLogger(__name__)


def generate_token() -> str:
    """Draw a fresh publication token from a CSPRNG."""
    return ''.join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def is_valid_token(token: str) -> bool:
    """
    Check that a string has the shape of a publication token.

    Anything else (path separators, dots, wrong length) is rejected before it
    gets near the filesystem.
    """
    return (
        isinstance(token, str)
        and len(token) == TOKEN_LENGTH
        and all(c in TOKEN_ALPHABET for c in token)
    )


def build_url(base_url: str, token: str, file_name: str) -> str:
    """
    Compose the public download URL.

    Args:
        base_url: Public prefix the proxy serves the publish root under
        token: Publication token
        file_name: Published file name

    Returns:
        '<base_url>/<token>/<file_name>' with no doubled slash
    """
    return f"{base_url.rstrip('/')}/{token}/{quote(file_name)}"


def publish(backup: BackupFile, publish_root: Union[str, Path], base_url: str) -> Publication:
    """
    Make a backup downloadable under a fresh token directory.

    The file is hard-linked into the token directory, or copied when the
    publish root lives on another filesystem. Whatever goes wrong after the
    token directory was created, the directory is removed again.

    Args:
        backup: Backup snapshot from the locator
        publish_root: Directory served by the reverse proxy
        base_url: Public URL prefix of publish_root

    Returns:
        Publication describing the new link

    Raises:
        TokenSpaceExhaustedError: If no unused token could be found
        SourceVanishedError: If the backup disappeared or changed size
        PublishError: On any other filesystem failure
    """
    root = Path(publish_root)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PublishError(f"Cannot create publish root {root}: {e}") from e

    with _token_directory(root) as (token, token_dir):
        target = token_dir / backup.name

        try:
            method = _link_or_copy(backup.path, target)
        except FileNotFoundError as e:
            raise SourceVanishedError(f"Backup {backup.name} disappeared before it was published") from e
        except OSError as e:
            raise PublishError(f"Failed to publish {backup.name}: {e}") from e

        try:
            published_size = target.stat().st_size
        except OSError as e:
            raise PublishError(f"Cannot stat published file {target}: {e}") from e

        if published_size != backup.size:
            raise SourceVanishedError(
                f"Backup {backup.name} changed during publish: "
                f"expected {backup.size} bytes, published {published_size}"
            )

        publication = Publication(
            token=token,
            source_path=backup.path,
            published_path=target,
            url=build_url(base_url, token, backup.name),
            created_at=datetime.now(timezone.utc),
            file_size=published_size,
        )

    logger.info(
        f"Published {backup.name} ({published_size} bytes) via {method} "
        f"under token {mask_token(token)}"
    )
    return publication


def list_publications(publish_root: Union[str, Path], base_url: str) -> List[Publication]:
    """
    Enumerate live publications, newest first.

    The publish root listing is the source of truth; entries that are not
    token directories holding a file are ignored.
    """
    publications = []
    for token, token_dir, created_at in _iter_token_dirs(Path(publish_root)):
        published = _published_file(token_dir)
        if published is None:
            logger.warning(f"Token directory {mask_token(token)} holds no file")
            continue
        try:
            size = published.stat().st_size
        except OSError:
            continue
        publications.append(Publication(
            token=token,
            source_path=None,
            published_path=published,
            url=build_url(base_url, token, published.name),
            created_at=created_at,
            file_size=size,
        ))

    publications.sort(key=lambda p: p.created_at, reverse=True)
    return publications


def revoke(publish_root: Union[str, Path], token: str) -> bool:
    """
    Invalidate a link by deleting its token directory.

    Returns:
        True if the publication existed and was removed, False if unknown

    Raises:
        InvalidTokenError: If token does not look like a publication token
        PublishError: If the directory could not be removed
    """
    if not is_valid_token(token):
        raise InvalidTokenError("Not a publication token")

    token_dir = Path(publish_root) / token
    if not token_dir.is_dir() or token_dir.is_symlink():
        return False

    try:
        shutil.rmtree(token_dir)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise PublishError(f"Failed to revoke publication {mask_token(token)}: {e}") from e

    logger.info(f"Revoked publication {mask_token(token)}")
    return True


def prune_expired(
    publish_root: Union[str, Path],
    max_age: timedelta,
    now: Optional[datetime] = None,
) -> List[str]:
    """
    Revoke every publication older than max_age.

    Returns:
        Tokens that were removed
    """
    if now is None:
        now = datetime.now(timezone.utc)

    removed = []
    for token, _, created_at in _iter_token_dirs(Path(publish_root)):
        if now - created_at < max_age:
            continue
        try:
            if revoke(publish_root, token):
                removed.append(token)
        except PublishError as e:
            logger.warning(f"Could not prune publication {mask_token(token)}: {e}")

    if removed:
        logger.info(f"Pruned {len(removed)} expired publication(s)")
    return removed


@contextmanager
def _token_directory(root: Path) -> Iterator[Tuple[str, Path]]:
    """
    Create a fresh token directory and remove it if the block fails.

    Exclusive mkdir is the collision guard: an existing directory means the
    token is taken and a new one is drawn.
    """
    for attempt in range(1, TOKEN_MAX_ATTEMPTS + 1):
        token = generate_token()
        token_dir = root / token
        try:
            os.mkdir(token_dir)
            break
        except FileExistsError:
            logger.warning(f"Token collision on attempt {attempt}/{TOKEN_MAX_ATTEMPTS}, retrying")
        except OSError as e:
            raise PublishError(f"Cannot create token directory in {root}: {e}") from e
    else:
        raise TokenSpaceExhaustedError(
            f"No free publication token after {TOKEN_MAX_ATTEMPTS} attempts"
        )

    try:
        yield token, token_dir
    except BaseException:
        try:
            shutil.rmtree(token_dir)
        except FileNotFoundError:
            pass
        except OSError as cleanup_error:
            logger.error(f"Failed to clean up token directory {mask_token(token)}: {cleanup_error}")
        raise


def _link_or_copy(source: Path, target: Path) -> str:
    """
    Hard-link source to target, copying instead across filesystems.

    Returns:
        'hard link' or 'copy'
    """
    try:
        os.link(source, target)
        return "hard link"
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        logger.info(f"{source.name} is on another filesystem than the publish root, copying")

    shutil.copyfile(source, target)
    return "copy"


def _iter_token_dirs(root: Path) -> Iterator[Tuple[str, Path, datetime]]:
    try:
        entries = list(os.scandir(root))
    except FileNotFoundError:
        return
    except OSError as e:
        raise PublishError(f"Cannot list publish root {root}: {e}") from e

    for entry in entries:
        if not is_valid_token(entry.name):
            continue
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
            mtime = entry.stat(follow_symlinks=False).st_mtime
        except OSError:
            continue
        yield entry.name, Path(entry.path), datetime.fromtimestamp(mtime, tz=timezone.utc)


def _published_file(token_dir: Path) -> Optional[Path]:
    try:
        for item in sorted(token_dir.iterdir()):
            if item.is_file():
                return item
    except OSError:
        return None
    return None
