import base64
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from ..auth import get_current_user
from ..config import settings
from ..errors import ValidationFailed
from ..schemas import UploadOut

router = APIRouter(prefix="/upload", tags=["upload"])

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".pdf", ".doc", ".docx", ".txt", ".zip"}


def validate_upload(file: UploadFile) -> None:
    """Check the file extension against the allow-list."""
    file_ext = Path(file.filename or "").suffix.lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise ValidationFailed(
            f"File type not allowed. Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            code="file_type_not_allowed",
        )


@router.post("", response_model=UploadOut)
async def upload(file: Optional[UploadFile] = File(default=None), user: str = Depends(get_current_user)):
    if file is None or not file.filename:
        raise ValidationFailed("No file uploaded", code="no_file")
    validate_upload(file)
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationFailed("File too large", code="file_too_large")
    return UploadOut(
        name=file.filename,
        mimeType=file.content_type or "application/octet-stream",
        size=len(content),
        data=base64.b64encode(content).decode("ascii"),
    )
