import contextlib
import time

import onnxruntime as ort

CUDA_PROVIDER = "CUDAExecutionProvider"
CPU_PROVIDER = "CPUExecutionProvider"


def cuda_available() -> bool:
    """True when the installed ONNX Runtime build ships the CUDA provider."""
    return CUDA_PROVIDER in ort.get_available_providers()


def determine_device(device_arg):
    """Determine the device to use for inference"""
    if device_arg is None or device_arg == "auto":
        return "cuda" if cuda_available() else "cpu"
    return device_arg.lower()


class Profiler(contextlib.ContextDecorator):
    """
    Wall-clock profiler for inference calls.

    ONNX Runtime runs synchronously, so no device synchronization is needed
    before reading the clock.

    Example:
        profiler = Profiler()
        with profiler:
            backend.run(handle, inputs)
        print(f"Inference time: {profiler.elapsed_time * 1000:.2f} ms")
    """

    def __init__(self, accumulated_time=0.0):
        """
        Args:
            accumulated_time (float): Initial accumulated time in seconds
        """
        self.accumulated_time = accumulated_time
        self.elapsed_time = 0.0  # seconds, last measurement only
        self._start_time = 0.0

    def __enter__(self):
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.elapsed_time = time.perf_counter() - self._start_time
        self.accumulated_time += self.elapsed_time

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_time * 1000.0

    def reset(self):
        """Reset accumulated and last-measurement timers."""
        self.accumulated_time = 0.0
        self.elapsed_time = 0.0

    def get_fps(self, num_samples):
        """
        Calculate inferences per second.

        Args:
            num_samples (int): Number of samples processed

        Returns:
            float: FPS based on accumulated time
        """
        if self.accumulated_time > 0:
            return num_samples / self.accumulated_time
        return 0.0

    def get_avg_time_ms(self, num_operations):
        """
        Get average time per operation in milliseconds.

        Args:
            num_operations (int): Number of operations performed

        Returns:
            float: Average time per operation in milliseconds
        """
        if num_operations > 0:
            return (self.accumulated_time / num_operations) * 1000
        return 0.0
