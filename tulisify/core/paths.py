import os

from tulisify.core.config import settings


def get_project_root() -> str:
    """Return the absolute path of the repository root.
    This file lives at tulisify/core/paths.py, so the root is two
    directories above the package.
    """
    package_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.dirname(package_dir)


def get_upload_dir() -> str:
    """Return the absolute path of the local blob directory.
    - UPLOAD_DIRECTORY wins when it is set.
    - Otherwise data/storage under the repository root is used.
    The directory is created if missing.
    """
    if settings.UPLOAD_DIRECTORY:
        os.makedirs(settings.UPLOAD_DIRECTORY, exist_ok=True)
        return settings.UPLOAD_DIRECTORY

    uploads = os.path.join(get_project_root(), "data", "storage")
    os.makedirs(uploads, exist_ok=True)
    return uploads
