"""Image upload endpoints. Stored files are served under /uploads."""

from typing import List
from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from ..context import AppContext, get_context


router = APIRouter(prefix="/api/upload", tags=["uploads"])


@router.get("/info")
def storage_info(ctx: AppContext = Depends(get_context)):
    return ctx.uploads.info()


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_image(
    image: UploadFile = File(..., description="Image file"),
    ctx: AppContext = Depends(get_context),
):
    content = await image.read()
    return ctx.uploads.save(image.filename or "", content)


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
async def upload_images(
    images: List[UploadFile] = File(..., description="Image files"),
    ctx: AppContext = Depends(get_context),
):
    files = [(f.filename or "", await f.read()) for f in images]
    saved = ctx.uploads.save_many(files)
    return {"files": saved, "count": len(saved)}


@router.delete("/{filename}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(filename: str, ctx: AppContext = Depends(get_context)):
    ctx.uploads.delete(filename)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
