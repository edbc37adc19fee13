# eyes/api/v1/endpoints/face.py
# Enrollment photo checks
#
# POST /face/validate     -- run the acceptance rules on detector output
# POST /face/enrollment   -- validate + hand back the capture for sign-up

import logging

from fastapi import APIRouter

from eyes.core.errors import FaceRejected
from eyes.schemas.face import (
    FaceCheckResponse,
    FaceDetectionResult,
    FaceEnrollment,
    FaceEnrollmentRequest,
    ImageSize,
)
from eyes.services.face_validation import check_face, image_size_from_base64, strip_data_url

logger = logging.getLogger("eyes.face")

router = APIRouter()


@router.post("/validate", response_model=FaceCheckResponse, summary="Check a face capture")
def validate_face(payload: FaceDetectionResult):
    """
    A rejected capture is a normal outcome here, so it comes back as
    accepted=false with the dialog text rather than as an error status.
    """
    try:
        check_face(payload)
    except FaceRejected as exc:
        return FaceCheckResponse(accepted=False, title=exc.title, message=exc.message)
    return FaceCheckResponse(accepted=True, title="Face Validated", message="Your face has been captured.")


@router.post("/enrollment", response_model=FaceEnrollment, summary="Validate and prepare the enrollment photo")
def enroll_face(payload: FaceEnrollmentRequest):
    detection = payload.detection
    if detection.image is None:
        width, height = image_size_from_base64(payload.image_base64)
        detection = detection.model_copy(update={"image": ImageSize(width=width, height=height)})

    check_face(detection)
    logger.info("Accepted enrollment capture %s (%dx%d)", payload.filename, detection.image.width, detection.image.height)
    return FaceEnrollment(
        filename=payload.filename,
        face_image_base64=strip_data_url(payload.image_base64),
        width=detection.image.width,
        height=detection.image.height,
    )
