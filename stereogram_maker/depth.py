# (c) 2024 Niels Provos
#
"""
Create Depth Maps from Images

This module wraps a pre-trained depth estimation model from Hugging Face. The
stereogram engine treats it as an external collaborator: it only needs a
grayscale depth map in which near objects are bright.
"""

import cv2
import numpy as np
import torch
from PIL import Image
from transformers import pipeline

from . import constants as C


def torch_get_device():
    """
    Returns the appropriate torch device based on the availability of CUDA or MPS.

    Returns:
        torch.device: The torch device (cuda, mps, or cpu) based on availability.
    """
    if torch.cuda.is_available():
        return torch.device("cuda")
    elif torch.backends.mps.is_available():
        return torch.device("mps")
    return torch.device("cpu")


class DepthEstimationModel:
    def __init__(self, model=C.DEFAULT_DEPTH_MODEL):
        self._model_name = model
        self.model = None

    def __eq__(self, other):
        if not isinstance(other, DepthEstimationModel):
            return False
        return self._model_name == other._model_name

    @property
    def model_name(self):
        return self._model_name

    def load_model(self, progress_callback=None):
        if progress_callback:
            progress_callback(0, 100)

        self.model = pipeline(
            "depth-estimation", model=self._model_name, device=torch_get_device()
        )

        if progress_callback:
            progress_callback(50, 100)

    def depth_map(self, image, progress_callback=None):
        """
        Estimates the depth of an image.

        Args:
            image (PIL.Image.Image or numpy.ndarray): The input image.
            progress_callback (callable, optional): A callback function to report progress.

        Returns:
            numpy.ndarray: A uint8 depth map with the size of the image, near is bright.
        """
        if self.model is None:
            self.load_model(progress_callback=progress_callback)

        if not isinstance(image, Image.Image):
            image = Image.fromarray(image)
        image = image.convert("RGB")

        with torch.no_grad():
            result = self.model(image)

        depth = np.array(result["depth"], dtype=np.float32)
        if depth.shape[:2] != (image.height, image.width):
            depth = cv2.resize(
                depth, (image.width, image.height), interpolation=cv2.INTER_CUBIC
            )
        depth = cv2.normalize(depth, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U)

        if progress_callback:
            progress_callback(100, 100)

        return depth
