"""
Purpose: InsightFace-backed face + gender detector.
Constraints: Model load and inference run in worker threads.

Each detected face yields one Detection for its more likely gender. The
confidence is that gender's probability, a softmax over the genderage
head's two gender outputs (index 0 female, index 1 male) computed on the
same aligned crop FaceAnalysis uses.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import List, Sequence, Tuple

import numpy as np

from feed_scanner.classifier.base import ClassifierInitError, FrameClassifier
from feed_scanner.core.models import Detection

logger = logging.getLogger(__name__)

GENDER_CATEGORIES = ("female", "male")
CROP_PADDING = 1.5


def gender_probabilities(logits: Sequence[float]) -> Tuple[float, float]:
    """Softmax over the two gender outputs -> (female, male)."""
    scores = np.asarray(logits[:2], dtype=np.float64)
    scores = np.exp(scores - scores.max())
    female, male = scores / scores.sum()
    return float(female), float(male)


def detection_from_logits(logits: Sequence[float]) -> Detection:
    probs = gender_probabilities(logits)
    index = int(np.argmax(probs))
    return Detection(category=GENDER_CATEGORIES[index], confidence=probs[index])


class InsightFaceClassifier(FrameClassifier):
    def __init__(self, model_name: str = "buffalo_l", model_root: str = "", det_size: int = 640):
        self.model_name = model_name
        self.model_root = model_root
        self.det_size = det_size
        self._app = None

    def _load(self):
        try:
            from insightface.app import FaceAnalysis
        except ImportError as exc:
            raise ClassifierInitError("insightface is not installed (pip install 'feed-scanner[face]')") from exc

        kwargs = {"name": self.model_name, "allowed_modules": ["detection", "genderage"]}
        if self.model_root:
            kwargs["root"] = os.path.expanduser(self.model_root)
        try:
            app = FaceAnalysis(**kwargs)
            app.prepare(ctx_id=-1, det_size=(self.det_size, self.det_size))
        except Exception as exc:
            raise ClassifierInitError(f"could not load face model '{self.model_name}': {exc}") from exc
        if "genderage" not in getattr(app, "models", {}):
            raise ClassifierInitError(f"face model '{self.model_name}' has no genderage head")
        logger.info(f"Face model '{self.model_name}' loaded")
        return app

    async def initialize(self) -> None:
        if self._app is None:
            self._app = await asyncio.to_thread(self._load)

    def _gender_logits(self, bgr: np.ndarray, face) -> np.ndarray:
        """Run the genderage head on the face crop and return its raw outputs."""
        import cv2
        from insightface.utils import face_align

        model = self._app.models["genderage"]
        x1, y1, x2, y2 = (float(v) for v in face.bbox[:4])
        size = model.input_size[0]
        scale = size / (max(x2 - x1, y2 - y1) * CROP_PADDING)
        crop, _ = face_align.transform(bgr, ((x1 + x2) / 2, (y1 + y2) / 2), size, scale, 0)
        blob = cv2.dnn.blobFromImage(
            crop,
            1.0 / model.input_std,
            (crop.shape[1], crop.shape[0]),
            (model.input_mean, model.input_mean, model.input_mean),
            swapRB=True,
        )
        return model.session.run(model.output_names, {model.input_name: blob})[0][0]

    def _detect_sync(self, frame: np.ndarray) -> List[Detection]:
        bgr = np.ascontiguousarray(frame[:, :, ::-1])
        detections = []
        for face in self._app.get(bgr) or []:
            detections.append(detection_from_logits(self._gender_logits(bgr, face)))
        return detections

    async def detect(self, frame: np.ndarray) -> List[Detection]:
        if self._app is None:
            raise RuntimeError("classifier used before initialize()")
        return await asyncio.to_thread(self._detect_sync, frame)
