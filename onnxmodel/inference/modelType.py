import os
from enum import Enum


class ModelType(Enum):
    ONNX = "onnx"
    ORT = "ort"

    @classmethod
    def from_extension(cls, model_path):
        """Determine model type from file extension"""

        extension_map = {
            ".onnx": cls.ONNX,
            ".ort": cls.ORT,
        }

        ext = os.path.splitext(str(model_path))[1].lower()
        model_type = extension_map.get(ext)

        if model_type is None:
            raise ValueError(
                f"Unsupported model format: {ext}. Supported: {list(extension_map.keys())}"
            )

        return model_type
