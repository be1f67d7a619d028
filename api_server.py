from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from mri_features.dataset_processing import process_dataset
from mri_features.errors import InvalidDimensions, UnsupportedFileType
from mri_features.feature_extractor_config import merged_config
from mri_features.feature_extractor_core import extract_features
from mri_features.features.preprocess import decode_rgba
from mri_features.samples import ImageSample

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

CONFIG = merged_config(
    max_features=int(os.getenv("MRI_MAX_FEATURES", "50")),
    max_workers=int(os.getenv("MRI_MAX_WORKERS", "8")),
)
PLACEHOLDER_NOTICE = (
    "Pixel statistics only. No diagnostic model is involved and nothing here is a classification."
)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class FeaturesRequest(BaseModel):
    image: str
    name: str = "upload"


class FeaturesResponse(BaseModel):
    name: str
    features: Dict[str, str]
    notice: str = PLACEHOLDER_NOTICE


class DatasetFile(BaseModel):
    name: str
    image: Optional[str] = None
    mediaType: Optional[str] = None


class DatasetRequest(BaseModel):
    files: List[DatasetFile] = Field(default_factory=list)


def _decode_base64(data: str, name: str) -> bytes:
    # Accept data URLs as produced by FileReader.readAsDataURL.
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid base64 payload for '{name}'") from exc


def _to_sample(f: DatasetFile) -> ImageSample:
    if f.image is None:
        return ImageSample(name=f.name, media_type=f.mediaType)
    raw = _decode_base64(f.image, f.name)
    try:
        pixels = decode_rgba(raw, tuple(CONFIG["image_size"]), name=f.name)
    except UnsupportedFileType:
        # Left undecoded; categorization still sees the name.
        logger.warning("Could not decode %s", f.name)
        return ImageSample(name=f.name, media_type=f.mediaType)
    return ImageSample(name=f.name, pixels=pixels, media_type=f.mediaType)


@app.post("/features", response_model=FeaturesResponse)
async def features(request: FeaturesRequest):
    raw = _decode_base64(request.image, request.name)
    try:
        pixels = decode_rgba(raw, tuple(CONFIG["image_size"]), name=request.name)
        width, height = CONFIG["image_size"]
        vector = extract_features(pixels, int(width), int(height), config=CONFIG)
    except UnsupportedFileType as e:
        raise HTTPException(status_code=415, detail=str(e))
    except InvalidDimensions as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Extracted features for %s", request.name)
    return FeaturesResponse(name=request.name, features=vector.formatted())


@app.post("/dataset")
async def dataset(request: DatasetRequest):
    samples = [_to_sample(f) for f in request.files]
    try:
        summary = process_dataset(samples, config=CONFIG)
    except UnsupportedFileType as e:
        raise HTTPException(status_code=415, detail=str(e))
    logger.info("Dataset processed: %d images", summary.statistics.total_images)
    return summary.to_dict()


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
