"""
Source image routes.

Fetch order images by URL and turn photos into line art through the
external image-generation service.
"""
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from services.image_generation import ImageGenerationClient
from services.image_io import decode_image_payload, split_data_url, to_data_url
from services.remote_images import fetch_remote_image

router = APIRouter()
generation_client = ImageGenerationClient()


class FetchImageRequest(BaseModel):
    image_url: Optional[str] = None


class TransformRequest(BaseModel):
    image_data: Optional[str] = None
    prompt: str = ""
    step: Optional[int] = None


class ImageDataResponse(BaseModel):
    success: bool = True
    image_data: str
    step: Optional[int] = None


@router.post("/fetch-image", response_model=ImageDataResponse)
def fetch_image(req: FetchImageRequest):
    """Download an order image and return it as a data URL."""
    content_type, body = fetch_remote_image(req.image_url)
    return ImageDataResponse(image_data=to_data_url(body, content_type))


@router.post("/transform", response_model=ImageDataResponse)
def transform(req: TransformRequest):
    """Generate line art from a photo. Not retried; the operator re-runs it."""
    image_bytes = decode_image_payload(req.image_data, "image_data")
    mime_type, _ = split_data_url(req.image_data.strip())
    png = generation_client.transform(image_bytes, mime_type or "image/png", req.prompt)
    return ImageDataResponse(image_data=to_data_url(png), step=req.step)
