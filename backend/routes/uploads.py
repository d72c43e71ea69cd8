from fastapi import APIRouter
from schemas import UploadBase64Request
from responses import ok
from services.uploads import upload_image

router = APIRouter(prefix="/api/cloudinary", tags=["uploads"])


@router.post('/upload-ticket')
def upload_ticket(req: UploadBase64Request):
    """Upload one ticket image for a registration in progress."""
    data = upload_image(req.base64_image, folder=req.folder, public_id=req.public_id, tags=req.tags)
    return ok(data, "Image uploaded successfully")
