import os
from typing import List, Optional
from uuid import uuid4

from flask import current_app
from werkzeug.exceptions import BadRequest
from werkzeug.utils import secure_filename

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

# Folder name under UPLOAD_FOLDER -> per-file size limit in bytes.
UPLOAD_KINDS = {
    "products": 5 * 1024 * 1024,
    "users": 2 * 1024 * 1024,
}


def upload_directory(kind: str) -> str:
    return os.path.join(current_app.config["UPLOAD_FOLDER"], kind)


def ensure_upload_directories(app) -> None:
    for kind in UPLOAD_KINDS:
        os.makedirs(os.path.join(app.config["UPLOAD_FOLDER"], kind), exist_ok=True)


def has_file(image_file) -> bool:
    return bool(image_file and getattr(image_file, "filename", ""))


def allowed_image_extension(filename: str) -> bool:
    extension = os.path.splitext(filename)[1].lower().lstrip(".")
    if not extension:
        return False
    return extension in ALLOWED_IMAGE_EXTENSIONS


def _file_size(image_file) -> int:
    stream = image_file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def save_image(image_file, kind: str) -> str:
    """Store an uploaded image and return its public path, e.g. /uploads/users/<name>."""
    if not has_file(image_file):
        raise BadRequest("An image file is required.")

    original_filename = secure_filename(image_file.filename)
    if not original_filename:
        raise BadRequest("Please choose a valid file name.")

    mimetype = str(getattr(image_file, "mimetype", "") or "")
    if not allowed_image_extension(original_filename) or not mimetype.startswith(
        "image/"
    ):
        raise BadRequest(
            "Only image files are allowed. Upload PNG, JPG, JPEG, GIF, or WEBP files."
        )

    max_size = UPLOAD_KINDS[kind]
    if _file_size(image_file) > max_size:
        raise BadRequest(
            f"Image exceeds the {max_size // (1024 * 1024)} MB upload limit."
        )

    extension = os.path.splitext(original_filename)[1].lower()
    unique_filename = f"{uuid4().hex}{extension}"
    destination = os.path.join(upload_directory(kind), unique_filename)

    try:
        image_file.save(destination)
    except OSError:
        current_app.logger.warning("Unable to store uploaded image at %s", destination)
        raise BadRequest("We could not store the uploaded image. Please try again.")

    return f"/uploads/{kind}/{unique_filename}"


def save_images(image_files, kind: str) -> List[str]:
    saved_paths: List[str] = []
    for image_file in image_files or []:
        if not has_file(image_file):
            continue
        try:
            saved_paths.append(save_image(image_file, kind))
        except BadRequest:
            remove_image(saved_paths)
            raise
    return saved_paths


def remove_image(path) -> None:
    if not path:
        return

    if isinstance(path, (list, tuple, set)):
        for item in path:
            remove_image(item)
        return

    for kind in UPLOAD_KINDS:
        prefix = f"/uploads/{kind}/"
        if str(path).startswith(prefix):
            filename = secure_filename(str(path)[len(prefix):])
            break
    else:
        return

    if not filename:
        return

    target = os.path.join(upload_directory(kind), filename)
    try:
        os.remove(target)
    except FileNotFoundError:
        return
    except OSError as exc:
        current_app.logger.warning("Unable to remove uploaded image %s: %s", target, exc)
