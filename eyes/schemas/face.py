# eyes/schemas/face.py
# Pydantic models for the on-device face detector output and enrollment hand-off

from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator


class Point(BaseModel):
    x: float
    y: float


class Size(BaseModel):
    width: float
    height: float


class Bounds(BaseModel):
    origin: Point
    size: Size


class FaceRecord(BaseModel):
    """One detected face. Landmarks are keyed by name, e.g. LEFT_EYE -> {x, y}."""
    bounds: Bounds
    landmarks: Dict[str, Optional[Point]] = {}


class ImageSize(BaseModel):
    width: int
    height: int


class FaceDetectionResult(BaseModel):
    faces: List[FaceRecord] = []
    image: Optional[ImageSize] = None


class FaceCheckResponse(BaseModel):
    accepted: bool
    title: Optional[str] = None
    message: Optional[str] = None


class FaceEnrollmentRequest(BaseModel):
    image_base64: str
    filename: str = "face.jpg"
    detection: FaceDetectionResult

    @field_validator("image_base64")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Capture and validate your face first.")
        return v


class FaceEnrollment(BaseModel):
    """What the sign-up step needs: the validated capture and its file name."""
    filename: str
    face_image_base64: str
    width: int
    height: int
