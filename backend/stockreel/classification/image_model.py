"""
Generic image classifiers used by the model fallback.

The classifier never owns a model. A model is loaded once by the caller
(typically at startup) and injected as an immutable handle.

Design rules:
- classify() is a pure function of the image file
- Loading is explicit; there is no module-level model cache
- Heavy ML dependencies are imported only when a real model is loaded
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .models import Prediction

logger = logging.getLogger(__name__)


DEFAULT_MODEL_NAME = "google/mobilenet_v2_1.0_224"
DEFAULT_TOP_K = 5


@runtime_checkable
class ImageModel(Protocol):
    """Anything that maps an image file to ranked label predictions."""

    def classify(self, image_path: str) -> List[Prediction]:
        ...


class TransformersImageModel:
    """
    Hugging Face image-classification pipeline (MobileNet by default).

    Usage:
        model = TransformersImageModel.load()
        classifier = CategoryClassifier(image_model=model, frame_sampler=sampler)
    """

    def __init__(self, pipeline: Any, top_k: int = DEFAULT_TOP_K, name: str = DEFAULT_MODEL_NAME):
        self._pipeline = pipeline
        self._top_k = top_k
        self.name = name

    @classmethod
    def load(
        cls,
        model_name: str = DEFAULT_MODEL_NAME,
        top_k: int = DEFAULT_TOP_K,
        device: Optional[str] = None,
    ) -> "TransformersImageModel":
        """
        Load the pretrained pipeline.

        Requires the `model` extra (transformers + torch).

        Args:
            model_name: Hub model id
            top_k: Predictions returned per image
            device: Torch device string, or None for the library default
        """
        from transformers import pipeline

        logger.info(f"[ImageModel] Loading {model_name}")
        kwargs: Dict[str, Any] = {"model": model_name}
        if device is not None:
            kwargs["device"] = device
        classifier = pipeline("image-classification", **kwargs)
        return cls(classifier, top_k=top_k, name=model_name)

    def classify(self, image_path: str) -> List[Prediction]:
        from PIL import Image

        with Image.open(image_path) as img:
            rgb = img.convert("RGB")
        outputs = self._pipeline(rgb, top_k=self._top_k)
        return [
            Prediction(label=str(out["label"]), probability=float(out["score"]))
            for out in outputs
        ]


class FakeImageModel:
    """
    Deterministic model for tests and dry runs.

    Returns the same predictions for every frame unless `by_substring`
    maps part of a frame path to its own list. Setting `error` makes every
    call raise it.
    """

    def __init__(
        self,
        predictions: Optional[Sequence[Prediction]] = None,
        by_substring: Optional[Dict[str, Sequence[Prediction]]] = None,
        error: Optional[Exception] = None,
    ):
        self._predictions = list(predictions or [])
        self._by_substring = {k: list(v) for k, v in (by_substring or {}).items()}
        self._error = error
        self.calls: List[str] = []

    def classify(self, image_path: str) -> List[Prediction]:
        self.calls.append(str(image_path))
        if self._error is not None:
            raise self._error
        for key, predictions in self._by_substring.items():
            if key in str(image_path):
                return list(predictions)
        return list(self._predictions)
