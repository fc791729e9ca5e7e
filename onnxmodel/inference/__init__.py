from .model import InitSettings, Model, make_backend
from .modelType import ModelType
