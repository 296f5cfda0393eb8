import os
import shutil
import uuid

from fastapi import UploadFile

from .. import config


def save_upload(upload: UploadFile, folder: str, prefix: str) -> str:
    """Copy an uploaded file under MEDIA_ROOT/<folder> and return its relative URL."""
    extension = os.path.splitext(upload.filename or "")[1].lower() or ".jpg"
    file_name = f"{prefix}_{uuid.uuid4().hex}{extension}"
    directory = os.path.join(config.MEDIA_ROOT, folder)
    os.makedirs(directory, exist_ok=True)

    file_location = os.path.join(directory, file_name)
    with open(file_location, "wb+") as file_object:
        shutil.copyfileobj(upload.file, file_object)
    return f"/media/{folder}/{file_name}"
