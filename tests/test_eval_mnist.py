# tests/test_eval_mnist.py
import pytest
import yaml

import eval_mnist
from onnxmodel.utils import setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging()


def test_parse_args_defaults():
    args = eval_mnist.parse_args([])

    assert args.config is None
    assert args.model is None
    assert args.device is None
    assert args.tests_per_digit is None


def test_main_with_missing_model_file_raises(tmp_path):
    args = eval_mnist.parse_args(
        ["--model", str(tmp_path / "does_not_exist.onnx"), "--device", "cpu"]
    )
    with pytest.raises(FileNotFoundError):
        eval_mnist.main(args)


def test_cli_prints_summary(mnist_model_path, digit_image_root, capsys):
    code = eval_mnist.cli(
        [
            "--model",
            str(mnist_model_path),
            "--test_image_root",
            str(digit_image_root),
            "--tests_per_digit",
            "1",
            "--device",
            "cpu",
            "--log_level",
            "WARNING",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert " Run Type: CPU" in out
    assert " Evaluated: 10  Correct: 10  Accuracy: 100.000000%" in out


def test_cli_reads_config_file(mnist_model_path, digit_image_root, tmp_path):
    config_path = tmp_path / "mnist.yml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "model": str(mnist_model_path),
                "test_image_root": str(digit_image_root),
                "tests_per_digit": 2,
                "device": "cpu",
                "log_level": "WARNING",
            }
        )
    )

    result = eval_mnist.main(eval_mnist.parse_args(["--config", str(config_path)]))
    assert result.total_number_of_inferences == 20


def test_cli_fails_when_nothing_evaluated(mnist_model_path, tmp_path):
    code = eval_mnist.cli(
        [
            "--model",
            str(mnist_model_path),
            "--test_image_root",
            str(tmp_path / "empty"),
            "--device",
            "cpu",
            "--log_level",
            "ERROR",
        ]
    )
    assert code == 1
