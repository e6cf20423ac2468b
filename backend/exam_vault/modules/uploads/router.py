"""
Uploads router: stores a PDF in the object store ahead of submission
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile

from ...core.config import MAX_UPLOAD_BYTES
from ...core.errors import ValidationFailed
from ...core.security import require_identity
from ...core.storage import ObjectStore, generate_object_key, get_object_store
from ..auth.identity import SessionIdentity

logger = logging.getLogger(__name__)

router = APIRouter()

PDF_CONTENT_TYPES = ("application/pdf", "application/x-pdf")


def _is_pdf(upload: UploadFile) -> bool:
    name = (upload.filename or "").lower()
    return upload.content_type in PDF_CONTENT_TYPES or name.endswith(".pdf")


@router.post("")
def upload_paper_file(
    file: UploadFile = File(...),
    identity: SessionIdentity = Depends(require_identity),
    object_store: ObjectStore = Depends(get_object_store)
):
    """
    Upload a PDF (max 10MB by default) and return its key and public URL.
    The returned ``fileName`` and ``url`` go into the paper submission.
    """
    if not _is_pdf(file):
        raise ValidationFailed(["file"], message="Only PDF files are accepted.")

    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    if not data:
        raise ValidationFailed(["file"], message="The uploaded file is empty.")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationFailed(
            ["file"], message=f"File size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
        )

    key = generate_object_key(file.filename or "paper.pdf")
    url = object_store.put(key, data, content_type="application/pdf")
    logger.info(f"User {identity.email} uploaded {key}")

    return {"success": True, "fileName": key, "url": url}
