import os
import re
from typing import List, Optional, Tuple

from ..utils import get_logger

logger = get_logger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def allowed_file(filename):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in [
        "png",
        "jpg",
        "jpeg",
    ]


def parse_label(directory_name: str) -> Optional[int]:
    """Leading integer of a directory name ("3" -> 3, "7_extra" -> 7), else None."""
    match = _LEADING_INT.match(directory_name)
    if match is None:
        return None
    return int(match.group(1))


class DigitImageDataset:
    """
    Labeled image samples laid out as ``<root>/<label>/<sample-id>.<ext>``.

    Directories whose name does not start with an integer are ignored, as
    are non-image files. At most ``samples_per_label`` files are taken from
    each label directory, in sorted name order.
    """

    def __init__(
        self,
        root_directory_path: str,
        samples_per_label: Optional[int] = None,
    ) -> None:
        """
        Args:
            root_directory_path: Directory holding one sub-directory per label.
            samples_per_label: Cap on samples per label. None takes all.
        """
        self.root_directory_path = str(root_directory_path)
        self.samples_per_label = samples_per_label
        self.samples: List[Tuple[str, int]] = []

        if not os.path.isdir(self.root_directory_path):
            logger.warning(
                f"Test image root not found, no samples loaded: {self.root_directory_path}"
            )
            return

        for entry in sorted(os.listdir(self.root_directory_path)):
            label_path = os.path.join(self.root_directory_path, entry)
            if not os.path.isdir(label_path):
                continue
            label = parse_label(os.fsdecode(entry))
            if label is None:
                logger.debug(f"Skipping non-label directory: {label_path}")
                continue

            files = sorted(
                os.fsdecode(f)
                for f in os.listdir(label_path)
                if allowed_file(os.fsdecode(f))
                and os.path.isfile(os.path.join(label_path, f))
            )
            if self.samples_per_label is not None:
                files = files[: max(0, self.samples_per_label)]
            if not files:
                logger.warning(f"No samples found for label {label} in {label_path}")

            for filename in files:
                self.samples.append((os.path.join(label_path, filename), label))

        logger.info(
            f"Found {len(self.samples)} samples across {len(self.labels)} labels "
            f"in {self.root_directory_path}"
        )

    @property
    def labels(self) -> List[int]:
        return sorted({label for _, label in self.samples})

    def __len__(self):
        return len(self.samples)

    def __getitem__(self, idx):
        return self.samples[idx]

    def __iter__(self):
        return iter(self.samples)
