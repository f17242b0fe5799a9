import asyncio
import math
import sys
from types import SimpleNamespace

import numpy as np
import pytest

from feed_scanner.classifier.adapter import decide
from feed_scanner.classifier.base import ClassifierInitError
from feed_scanner.classifier.insight import (
    InsightFaceClassifier,
    detection_from_logits,
    gender_probabilities,
)


def logit_for(p_female):
    """Two-output logits whose softmax gives p_female for index 0."""
    return [math.log(p_female), math.log(1.0 - p_female)]


def test_gender_probabilities_is_a_softmax():
    female, male = gender_probabilities([2.0, 0.0, 0.31])
    assert female == pytest.approx(1 / (1 + math.exp(-2.0)))
    assert female + male == pytest.approx(1.0)
    assert gender_probabilities([5.0, 5.0]) == pytest.approx((0.5, 0.5))


def test_large_logits_do_not_overflow():
    female, male = gender_probabilities([1000.0, 0.0])
    assert female == pytest.approx(1.0)
    assert male == pytest.approx(0.0)


def test_detection_uses_gender_probability_not_face_score():
    detection = detection_from_logits(logit_for(0.82))
    assert detection.category == "female"
    assert detection.confidence == pytest.approx(0.82)

    detection = detection_from_logits(logit_for(0.3))
    assert detection.category == "male"
    assert detection.confidence == pytest.approx(0.7)


def test_borderline_female_face_stays_below_threshold():
    detections = [detection_from_logits(logit_for(0.6))]
    assert not decide(detections, "female", 0.7).positive


class _FakeApp:
    def __init__(self, faces):
        self.faces = faces
        self.models = {"genderage": object()}
        self.frames = []

    def get(self, img):
        self.frames.append(img)
        return self.faces


def test_detect_emits_one_detection_per_face(monkeypatch):
    classifier = InsightFaceClassifier()
    faces = [SimpleNamespace(bbox=np.array([0, 0, 4, 4]), p=0.9), SimpleNamespace(bbox=np.array([1, 1, 3, 3]), p=0.2)]
    classifier._app = _FakeApp(faces)
    monkeypatch.setattr(classifier, "_gender_logits", lambda bgr, face: np.array(logit_for(face.p)))

    frame = np.zeros((4, 4, 3), dtype=np.uint8)
    frame[..., 0] = 255
    detections = asyncio.run(classifier.detect(frame))

    assert [d.category for d in detections] == ["female", "male"]
    assert detections[0].confidence == pytest.approx(0.9)
    assert detections[1].confidence == pytest.approx(0.8)
    # RGB in, BGR handed to the model
    assert classifier._app.frames[0][0, 0].tolist() == [0, 0, 255]


def test_detect_before_initialize_raises():
    with pytest.raises(RuntimeError):
        asyncio.run(InsightFaceClassifier().detect(np.zeros((2, 2, 3), dtype=np.uint8)))


def test_missing_insightface_is_an_init_error(monkeypatch):
    monkeypatch.setitem(sys.modules, "insightface", None)
    monkeypatch.setitem(sys.modules, "insightface.app", None)
    with pytest.raises(ClassifierInitError):
        asyncio.run(InsightFaceClassifier().initialize())
