from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from teamflow.core.deps import get_active_user
from teamflow.models.user import User
from teamflow.schemas.evidence import UploadResponse
from teamflow.services.storage_service import StorageError, StorageNotConfiguredError, upload_file

router = APIRouter(prefix="/uploads", tags=["uploads"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload(file: UploadFile = File(...), current_user: User = Depends(get_active_user)):
    """Envoie le fichier au stockage; l'URL renvoyée sert ensuite à POST /tasks/{id}/evidence"""
    content = file.file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")

    try:
        return upload_file(content, file.filename or "evidence", folder=f"evidence/{current_user.id}")
    except StorageNotConfiguredError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
