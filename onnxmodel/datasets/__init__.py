from .digit_dataset import DigitImageDataset, allowed_file, parse_label
