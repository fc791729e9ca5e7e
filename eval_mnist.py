"""
Benchmark an MNIST ONNX model over a directory of labeled test images.

Usage:
    $ python eval_mnist.py --model model.onnx --test_image_root mnist_png/testing
    $ python eval_mnist.py --config mnist.yml --device cuda --tests_per_digit 100

The image root is laid out as <root>/<digit>/<sample-id>.png.
"""

import argparse
import os
import sys

from easydict import EasyDict as edict

from onnxmodel.config import load_config, merge_config
from onnxmodel.general import determine_device
from onnxmodel.mnist import run_mnist_suite
from onnxmodel.utils import get_logger, setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Evaluate MNIST digit classification accuracy and runtime with ONNX Runtime."
    )

    parser.add_argument(
        "--config", type=str, default=None, help="Path to config.yml/.json"
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="MNIST model file (.onnx or .ort).",
    )
    parser.add_argument(
        "--test_image_root",
        type=str,
        default=None,
        help="Directory containing one sub-directory of test images per digit.",
    )
    parser.add_argument(
        "--tests_per_digit",
        type=int,
        default=None,
        help="Maximum number of images evaluated per digit.",
    )
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        choices=["auto", "cpu", "cuda"],
        help="Device to run inference on (auto will choose cuda if available)",
    )
    parser.add_argument(
        "--warmup_runs",
        type=int,
        default=None,
        help="Inferences run on zero input before timing starts.",
    )

    parser.add_argument(
        "--log_level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level.",
    )
    parser.add_argument(
        "--log_to_file",
        action="store_true",
        default=None,
        help="Also write logs to logs/onnxmodel_<timestamp>.log",
    )

    return parser.parse_args(argv)


def main(args):
    config = edict(merge_config(args, load_config(args.config)))

    setup_logging(
        enabled=True, log_level=config.log_level, log_to_file=config.log_to_file
    )
    logger = get_logger("onnxmodel.eval")

    logger.info(f"Arguments: {dict(config)}")

    model_path = os.path.realpath(config.model)
    test_image_root = os.path.realpath(config.test_image_root)
    device_str = determine_device(config.device)

    logger.info(f"Selected device: {device_str}")
    logger.info(f"Model path: {model_path}")
    logger.info(f"Test image root: {test_image_root}")

    if not os.path.exists(model_path):
        logger.error(f"Model file not found: {model_path}")
        raise FileNotFoundError(f"Model file not found: {model_path}")

    result = run_mnist_suite(
        tests_per_digit=config.tests_per_digit,
        cuda_enable=device_str == "cuda",
        model_file=model_path,
        test_image_root=test_image_root,
        warmup_runs=config.warmup_runs,
    )

    for line in result.summary_lines():
        print(line)

    return result


def cli(argv=None) -> int:
    result = main(parse_args(argv))
    # Nothing evaluated counts as a failed run for the command line.
    return 0 if result.total_number_of_inferences > 0 else 1


if __name__ == "__main__":
    sys.exit(cli())
