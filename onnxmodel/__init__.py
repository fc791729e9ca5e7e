import logging

# Add NullHandler to prevent logs when used as library
logging.getLogger(__name__).addHandler(logging.NullHandler())

"""
Wraps ONNX Runtime inference sessions and provides an MNIST example suite.
"""

from .utils import get_logger  # Export for users
from .utils import setup_logging  # Export for users who want to enable logging
from .utils import disable_logging, enable_logging, softmax
from .datasets import DigitImageDataset
from .general import Profiler, determine_device
from .inference.model.wrapper import InitSettings, Model
from .inference.modelType import ModelType
from .mnist import (
    InferenceData,
    Mnist,
    MnistReturnValues,
    mnist_example,
    run_mnist_suite,
)

__version__ = "1.0.0"
