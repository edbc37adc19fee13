import base64
import io

import pytest
from PIL import Image

from eyes.core.errors import FaceRejected, ValidationFailed
from eyes.schemas.face import FaceDetectionResult
from eyes.services.face_validation import (
    REQUIRED_LANDMARKS,
    check_face,
    image_size_from_base64,
    strip_data_url,
)


def _face(x=0, y=0, w=50, h=50, landmarks=REQUIRED_LANDMARKS):
    return {
        "bounds": {"origin": {"x": x, "y": y}, "size": {"width": w, "height": h}},
        "landmarks": {name: {"x": x + 1, "y": y + 1} for name in landmarks},
    }


def _detection(*faces, width=100, height=100):
    return FaceDetectionResult(
        faces=list(faces),
        image={"width": width, "height": height} if width else None,
    )


def _png_base64(width, height):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 180, 160)).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode()


def test_accepts_a_good_capture():
    check_face(_detection(_face()))


def test_no_face():
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection())
    assert exc.value.title == "No Face Detected"
    assert exc.value.message == "Please ensure your face is clearly visible."


def test_multiple_faces_checked_before_size():
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection(_face(w=1, h=1), _face()))
    assert exc.value.title == "Multiple Faces Detected"


def test_face_at_exactly_minimum_share_is_accepted():
    # 20 x 100 = 2000 = 20% of 100 x 100
    check_face(_detection(_face(w=20, h=100)))


def test_face_just_below_minimum_share_is_too_small():
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection(_face(w=19, h=100)))
    assert exc.value.title == "Face Too Small"
    assert exc.value.message == "Move closer to the camera."


def test_custom_ratio():
    check_face(_detection(_face(w=10, h=10)), min_area_ratio=0.01)


def test_face_outside_frame_is_misaligned():
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection(_face(x=60, w=50, h=50)))
    assert exc.value.title == "Face Misaligned"


def test_negative_origin_is_misaligned():
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection(_face(x=-1, y=10)))
    assert exc.value.title == "Face Misaligned"


def test_missing_landmarks_are_listed():
    face = _face(landmarks=("LEFT_EYE", "RIGHT_EYE", "LEFT_MOUTH"))
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection(face))
    assert exc.value.title == "Face Validation Failed"
    assert "NOSE_BASE" in exc.value.message
    assert "RIGHT_MOUTH" in exc.value.message
    assert "LEFT_EYE" not in exc.value.message


def test_null_landmark_counts_as_missing():
    face = _face()
    face["landmarks"]["NOSE_BASE"] = None
    with pytest.raises(FaceRejected) as exc:
        check_face(_detection(face))
    assert "NOSE_BASE" in exc.value.message


def test_missing_image_size():
    with pytest.raises(ValidationFailed):
        check_face(_detection(_face(), width=0))


# ── Image helpers ─────────────────────────────────────────────────────────────

def test_strip_data_url():
    assert strip_data_url("data:image/jpeg;base64,AAAA") == "AAAA"
    assert strip_data_url("AAAA") == "AAAA"


def test_image_size_from_base64():
    assert image_size_from_base64(_png_base64(64, 48)) == (64, 48)
    assert image_size_from_base64("data:image/png;base64," + _png_base64(10, 20)) == (10, 20)


def test_image_size_rejects_garbage():
    with pytest.raises(ValidationFailed) as exc:
        image_size_from_base64(base64.b64encode(b"not an image").decode())
    assert exc.value.title == "Save Error"


def test_image_size_rejects_oversized_image(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    with pytest.raises(ValidationFailed) as exc:
        image_size_from_base64(_png_base64(64, 48))
    assert exc.value.title == "Save Error"


# ── Endpoints ─────────────────────────────────────────────────────────────────

def test_validate_endpoint_reports_rejection(client):
    resp = client.post("/api/v1/face/validate", json={"faces": [], "image": {"width": 100, "height": 100}})
    assert resp.status_code == 200
    assert resp.json()["accepted"] is False
    assert resp.json()["title"] == "No Face Detected"


def test_validate_endpoint_accepts(client):
    resp = client.post("/api/v1/face/validate", json={"faces": [_face()], "image": {"width": 100, "height": 100}})
    assert resp.status_code == 200
    assert resp.json()["accepted"] is True


def test_enrollment_reads_dimensions_from_image(client):
    resp = client.post("/api/v1/face/enrollment", json={
        "image_base64": "data:image/png;base64," + _png_base64(100, 100),
        "filename": "sam.png",
        "detection": {"faces": [_face()]},
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["filename"] == "sam.png"
    assert (body["width"], body["height"]) == (100, 100)
    assert not body["face_image_base64"].startswith("data:")


def test_enrollment_rejects_small_face(client):
    resp = client.post("/api/v1/face/enrollment", json={
        "image_base64": _png_base64(100, 100),
        "detection": {"faces": [_face(w=10, h=10)], "image": {"width": 100, "height": 100}},
    })
    assert resp.status_code == 422
    assert resp.json()["detail"] == {"title": "Face Too Small", "message": "Move closer to the camera."}
