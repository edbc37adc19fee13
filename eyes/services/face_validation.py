# eyes/services/face_validation.py
# Face acceptance rules for the enrollment photo
#
# Detection itself runs on the device; we receive the detector output
# (faces with bounds + landmarks, and the image size) and decide whether the
# capture is good enough to enroll. Checks run in a fixed order and the first
# failure wins, so the user always sees one actionable message.

import base64
import binascii
import io
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from eyes.core.config import settings
from eyes.core.errors import FaceRejected, ValidationFailed
from eyes.schemas.face import FaceDetectionResult, FaceRecord

REQUIRED_LANDMARKS = ("LEFT_EYE", "RIGHT_EYE", "NOSE_BASE", "LEFT_MOUTH", "RIGHT_MOUTH")


def missing_landmarks(face: FaceRecord) -> List[str]:
    present = face.landmarks or {}
    return [name for name in REQUIRED_LANDMARKS if not present.get(name)]


def check_face(
    detection: FaceDetectionResult,
    min_area_ratio: Optional[float] = None,
) -> None:
    """
    Raise FaceRejected with the dialog title/message for the first failed check.
    Returns None when the capture is acceptable.

    A face covering exactly the minimum share of the image is accepted:
    only a strictly smaller face is "too small".
    """
    ratio = settings.face_min_area_ratio if min_area_ratio is None else min_area_ratio
    faces = detection.faces

    if not faces:
        raise FaceRejected("Please ensure your face is clearly visible.", title="No Face Detected")

    if len(faces) > 1:
        raise FaceRejected("Please ensure only one face is in the frame.", title="Multiple Faces Detected")

    face = faces[0]
    box = face.bounds
    image = detection.image
    if image is None or image.width <= 0 or image.height <= 0:
        raise ValidationFailed("Image dimensions are required.", title="Detection Error")

    face_area = box.size.width * box.size.height
    image_area = image.width * image.height
    if face_area < ratio * image_area:
        raise FaceRejected("Move closer to the camera.", title="Face Too Small")

    if (
        box.origin.x < 0
        or box.origin.y < 0
        or box.origin.x + box.size.width > image.width
        or box.origin.y + box.size.height > image.height
    ):
        raise FaceRejected("Center your face properly within the frame.", title="Face Misaligned")

    missing = missing_landmarks(face)
    if missing:
        raise FaceRejected(f"Missing landmarks: {', '.join(missing)}.", title="Face Validation Failed")


# ── Image helpers ─────────────────────────────────────────────────────────────

def strip_data_url(b64_data: str) -> str:
    # may include "data:image/jpeg;base64," prefix
    if "," in b64_data:
        return b64_data.split(",", 1)[1]
    return b64_data


def image_size_from_base64(b64_data: str) -> Tuple[int, int]:
    """Decode the capture just far enough to read its width and height."""
    try:
        raw = base64.b64decode(strip_data_url(b64_data), validate=False)
        with Image.open(io.BytesIO(raw)) as img:
            return img.size
    except (binascii.Error, UnidentifiedImageError, Image.DecompressionBombError, OSError):
        raise ValidationFailed("Failed to process image. Please try again.", title="Save Error")
