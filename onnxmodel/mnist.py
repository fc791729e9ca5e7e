"""
MNIST digit classifier built on Model, and a suite that benchmarks it over
a directory of labeled test images.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from PIL import Image

from .datasets import DigitImageDataset
from .inference.model.backends.base import InferenceBackend
from .inference.model.wrapper import InitSettings, Model
from .utils import get_logger, softmax

logger = get_logger(__name__)

CUDA_MODEL_COLOR = (56, 229, 59, 255)


@dataclass
class MnistReturnValues:
    inference: int = 0  # predicted digit
    runtime: float = 0.0  # ms


@dataclass
class InferenceData:
    """Aggregated results of a suite run."""

    average_runtime_in_ms: float = 0.0
    total_runtime_in_ms: float = 0.0
    total_number_of_inferences: int = 0
    number_of_correct_inferences: int = 0
    cuda_enable: bool = False

    @property
    def accuracy(self) -> float:
        """Percentage of correct predictions, 0.0 when nothing was evaluated."""
        if self.total_number_of_inferences == 0:
            return 0.0
        return (
            self.number_of_correct_inferences / self.total_number_of_inferences * 100.0
        )

    def summary_lines(self) -> List[str]:
        return [
            f" Run Type: {'CUDA' if self.cuda_enable else 'CPU'}",
            f" Evaluated: {self.total_number_of_inferences}"
            f"  Correct: {self.number_of_correct_inferences}"
            f"  Accuracy: {self.accuracy:f}%",
            f" Total Runtime: {self.total_runtime_in_ms:f}ms"
            f"  Avg Runtime: {self.average_runtime_in_ms:f}ms",
        ]


class Mnist(Model):
    """
    Digit classifier for 28x28 grayscale images.

    ``input`` holds the single binarized image buffer fed to run();
    ``result`` is the label predicted by the latest get_result().
    """

    image_width = 28
    image_height = 28
    image_size = image_width * image_height

    def __init__(self, backend: Optional[InferenceBackend] = None):
        super().__init__(backend)
        self.input: List[np.ndarray] = [np.zeros(self.image_size, dtype=np.float32)]
        self.result: int = 0

    def load_image(self, path: str) -> None:
        """
        Decode an image into ``input[0]`` as a binary representation.

        A pure black pixel becomes 0.0, anything else 1.0. MNIST images are
        white digits on a black background.
        """
        with Image.open(path) as img:
            if img.size != (self.image_width, self.image_height):
                raise ValueError(
                    f"Expected a {self.image_width}x{self.image_height} image, "
                    f"got {img.size[0]}x{img.size[1]}: {path}"
                )
            pixels = np.asarray(img.convert("L"), dtype=np.uint8)

        np.copyto(self.input[0], (pixels != 0).reshape(-1))

    def get_result(self) -> int:
        """Softmax the first output in place and store its argmax in ``result``."""
        softmax(self.outputs[0], out=self.outputs[0])
        self.result = int(np.argmax(self.outputs[0]))
        return self.result


def mnist_example(mnist: Mnist, path: str) -> MnistReturnValues:
    """Classify one image with an already loaded Mnist model."""
    mnist.load_image(path)
    mnist.run(mnist.input)
    mnist.get_result()

    return MnistReturnValues(inference=mnist.result, runtime=mnist.delta)


def run_mnist_suite(
    tests_per_digit: int,
    cuda_enable: bool,
    model_file: str,
    test_image_root: str,
    warmup_runs: int = 0,
    backend: Optional[InferenceBackend] = None,
) -> InferenceData:
    """
    Load one Mnist model and evaluate it over ``<test_image_root>/<digit>/*.png``.

    The same model instance is used for all runs. At most
    ``tests_per_digit`` images are evaluated per digit. An empty or missing
    image root is not an error: the returned data reports zero inferences
    with 0.0 accuracy and runtime.
    """
    mnist = Mnist(backend)

    settings = InitSettings(model_file=model_file)
    if cuda_enable:
        settings.model_name = "MNIST CUDA (Precomputed)"
        settings.model_color = CUDA_MODEL_COLOR
        settings.cuda_enable = True
    else:
        settings.model_name = "MNIST (Precomputed)"

    mnist.load(settings)

    try:
        if warmup_runs > 0:
            mnist.warmup(runs=warmup_runs)

        dataset = DigitImageDataset(test_image_root, samples_per_label=tests_per_digit)
        total_runtime_in_ms = 0.0
        correct = 0

        for path, digit in dataset:
            returned = mnist_example(mnist, path)
            if returned.inference == digit:
                correct += 1
            total_runtime_in_ms += returned.runtime
            logger.debug(
                f"{path}: expected {digit}, inferred {returned.inference} "
                f"({returned.runtime:.3f} ms)"
            )
    finally:
        mnist.close()

    total = len(dataset)
    if total == 0:
        logger.warning(f"No MNIST test images evaluated under {test_image_root}")

    result = InferenceData(
        average_runtime_in_ms=total_runtime_in_ms / total if total else 0.0,
        total_runtime_in_ms=total_runtime_in_ms,
        total_number_of_inferences=total,
        number_of_correct_inferences=correct,
        cuda_enable=cuda_enable,
    )

    for line in result.summary_lines():
        logger.info(line)

    return result
